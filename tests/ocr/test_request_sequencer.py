import threading

from GalleryTranslator.ocr.sequencing import RequestSequencer


def test_sequence_numbers_increase():
    sequencer = RequestSequencer()
    assert sequencer.current == 0
    assert sequencer.next() == 1
    assert sequencer.next() == 2
    assert sequencer.current == 2


def test_older_requests_become_stale():
    sequencer = RequestSequencer()
    first = sequencer.next()
    assert sequencer.is_current(first)

    second = sequencer.next()
    assert not sequencer.is_current(first)
    assert sequencer.is_current(second)


def test_next_is_unique_across_threads():
    sequencer = RequestSequencer()
    seen = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            value = sequencer.next()
            with lock:
                seen.append(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(seen) == list(range(1, 801))
