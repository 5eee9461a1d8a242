from app.services.toasts import ToastQueue


def test_toast_expires_after_default_duration(scheduler):
    queue = ToastQueue(scheduler=scheduler)
    toast = queue.show_toast("🛒 New Order Received!", "Order #abc12345 - ETB 150", "success")

    assert toast.duration == 5000
    assert [h.delay for h in scheduler.pending] == [5.0]

    scheduler.fire(scheduler.pending[0])
    assert queue.toasts == []


def test_custom_duration(scheduler):
    queue = ToastQueue(scheduler=scheduler)
    queue.show_toast("title", "message", duration=2000)

    assert scheduler.pending[0].delay == 2.0


def test_remove_cancels_timer(scheduler):
    queue = ToastQueue(scheduler=scheduler)
    keep = queue.show_toast("keep", "message")
    drop = queue.show_toast("drop", "message")

    assert queue.remove_toast(drop.id)
    assert not queue.remove_toast(drop.id)
    assert [t.id for t in queue.toasts] == [keep.id]
    assert len(scheduler.pending) == 1


def test_listener_sees_show_and_remove(scheduler):
    events = []
    queue = ToastQueue(scheduler=scheduler, listener=lambda event, toast: events.append((event, toast.title)))

    toast = queue.show_toast("hello", "message")
    queue.remove_toast(toast.id)

    assert events == [("toast", "hello"), ("toast_remove", "hello")]


def test_failing_listener_is_ignored(scheduler):
    def broken(event, toast):
        raise RuntimeError("no clients")

    queue = ToastQueue(scheduler=scheduler, listener=broken)
    queue.show_toast("hello", "message")

    assert len(queue.toasts) == 1
