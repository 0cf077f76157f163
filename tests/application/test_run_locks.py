import threading
import time

from pdf_tutor.application.services.run_locks import DocumentRunLocks


def test_run_ids_increase():
    locks = DocumentRunLocks()
    ids = [locks.next_run_id() for _ in range(5)]
    assert ids == sorted(ids) and len(set(ids)) == 5


def test_same_document_is_serialized():
    locks = DocumentRunLocks()
    order: list[str] = []
    entered = threading.Event()

    def first():
        with locks.hold("a.pdf"):
            entered.set()
            time.sleep(0.05)
            order.append("first-done")

    def second():
        entered.wait()
        with locks.hold("a.pdf"):
            order.append("second")

    threads = [threading.Thread(target=first), threading.Thread(target=second)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert order == ["first-done", "second"]


def test_different_documents_do_not_block_each_other():
    locks = DocumentRunLocks()
    with locks.hold("a.pdf"):
        done = threading.Event()

        def other():
            with locks.hold("b.pdf"):
                done.set()

        t = threading.Thread(target=other)
        t.start()
        assert done.wait(timeout=2)
        t.join()


def test_is_running_and_cleanup():
    locks = DocumentRunLocks()
    with locks.hold("a.pdf"):
        assert locks.is_running("a.pdf")
    assert not locks.is_running("a.pdf")
    assert locks._locks == {}
