import logging

from shopping.logs import REQUEST_ID_CTX, RequestIdFilter, get_logger


def make_record():
    return logging.LogRecord("t", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_uses_placeholder_outside_request():
    record = make_record()
    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"


def test_filter_stamps_current_request_id():
    token = REQUEST_ID_CTX.set("rid-7")
    try:
        record = make_record()
        RequestIdFilter().filter(record)
    finally:
        REQUEST_ID_CTX.reset(token)
    assert record.request_id == "rid-7"


def test_get_logger_configures_once():
    first = get_logger("shopping-test")
    again = get_logger("shopping-test")
    assert first is again
    assert len(again.handlers) == 1
