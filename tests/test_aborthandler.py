import threading

from sideloader.aborthandler import CancellationRegistry


def test_abort_fires_listeners_once():
    reg = CancellationRegistry()
    token = reg.create("game")
    hits = []
    token.add_listener(lambda: hits.append(1))

    assert reg.abort("game") is True
    assert reg.abort("game") is False
    assert token.aborted
    assert hits == [1]


def test_abort_unknown_id_is_noop():
    reg = CancellationRegistry()
    assert reg.abort("nope") is False


def test_delete_twice_is_safe():
    reg = CancellationRegistry()
    reg.create("game")
    reg.delete("game")
    reg.delete("game")
    assert reg.get("game") is None


def test_create_replaces_previous_token():
    reg = CancellationRegistry()
    first = reg.create("game")
    second = reg.create("game")
    assert reg.get("game") is second

    reg.abort("game")
    assert second.aborted
    assert not first.aborted


def test_delete_with_stale_token_keeps_newer_launch():
    reg = CancellationRegistry()
    first = reg.create("game")
    second = reg.create("game")
    reg.delete("game", first)
    assert reg.get("game") is second
    reg.delete("game", second)
    assert reg.active() == []


def test_listener_added_after_abort_runs_immediately():
    reg = CancellationRegistry()
    token = reg.create("game")
    reg.abort("game")
    hits = []
    token.add_listener(lambda: hits.append("late"))
    assert hits == ["late"]


def test_failing_listener_does_not_block_others():
    reg = CancellationRegistry()
    token = reg.create("game")
    hits = []
    token.add_listener(lambda: 1 / 0)
    token.add_listener(lambda: hits.append("ok"))
    assert token.abort()
    assert hits == ["ok"]


def test_distinct_ids_do_not_interfere():
    reg = CancellationRegistry()
    ids = [f"g{i}" for i in range(50)]

    def worker(i):
        reg.create(i)
        reg.abort(i)
        reg.delete(i)

    threads = [threading.Thread(target=worker, args=(i,)) for i in ids]
    keep = reg.create("keeper")
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert reg.active() == ["keeper"]
    assert not keep.aborted
