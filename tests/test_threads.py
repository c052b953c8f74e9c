import threading

from leapsql.threads import EvalTask, ParallelExecutor, ThreadPool


def test_get_put():
    pool = ThreadPool(5)
    thread = pool.get("test1")
    assert thread.name == "test1"
    pool.put(thread)
    assert len(pool) == 1
    thread2 = pool.get("test2")
    assert len(pool) == 0
    assert thread2.name == "test2"
    assert thread2 is thread


def test_max_size():
    pool = ThreadPool(2)
    threads = [pool.get("test") for _ in range(3)]
    for thread in threads:
        pool.put(thread)
    assert len(pool) == 2


def test_default_size():
    pool = ThreadPool(0)
    assert pool.max_size == 10
    for _ in range(5):
        pool.put(pool.get("test"))
    assert len(pool) > 0


def test_concurrent():
    pool = ThreadPool(10)

    def work():
        pool.put(pool.get("concurrent"))

    workers = [threading.Thread(target=work) for _ in range(100)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    assert 1 <= len(pool) <= 10


def test_execute():
    executor = ParallelExecutor(5, {"x": 10, "y": 20})
    results = executor.execute(
        [EvalTask("task1", "x + 1"), EvalTask("task2", "y + 2"), EvalTask("task3", "x + y")]
    )
    assert [r.error for r in results] == [None, None, None]
    assert [r.value for r in results] == [11, 22, 30]
    assert [r.name for r in results] == ["task1", "task2", "task3"]


def test_execute_with_errors():
    executor = ParallelExecutor(2, {})
    results = executor.execute([EvalTask("valid", "1 + 1"), EvalTask("invalid", "undefined_var")])
    assert len(results) == 2
    assert results[0].error is None
    assert results[0].value == 2
    assert isinstance(results[1].error, NameError)


def test_execute_empty():
    assert ParallelExecutor(2, {}).execute([]) == []