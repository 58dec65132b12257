import json
import logging

from roomchat.core.logging import (
    StructuredFormatter,
    clear_session_context,
    log_access_event,
    set_session_context,
    setup_logging,
)


def make_record(message="hello", **extra):
    record = logging.LogRecord("roomchat.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """구조화 로그 포매터 테스트"""

    def test_json_output_with_extra(self):
        output = json.loads(StructuredFormatter().format(make_record(event_type="room_access", success=True)))

        assert output["level"] == "INFO"
        assert output["logger"] == "roomchat.test"
        assert output["message"] == "hello"
        assert output["extra"] == {"event_type": "room_access", "success": True}

    def test_session_context_is_included(self):
        set_session_context(user_id="user-a", room_id="room-1")
        try:
            output = json.loads(StructuredFormatter().format(make_record()))
        finally:
            clear_session_context()

        assert output["user_id"] == "user-a"
        assert output["room_id"] == "room-1"

    def test_access_event_helper(self, caplog):
        logger = logging.getLogger("roomchat.test.access")

        with caplog.at_level(logging.INFO, logger="roomchat.test.access"):
            log_access_event(logger, "join", "room-1", user_id="user-b", success=False, member_count=2)

        record = caplog.records[-1]
        assert record.event == "join"
        assert record.success is False
        assert record.member_count == 2
        assert "Failed" in record.getMessage()


class TestSetupLogging:

    def test_installs_single_console_handler(self):
        root = logging.getLogger()
        previous = root.handlers[:]
        try:
            setup_logging(logging.DEBUG)
            setup_logging(logging.DEBUG)

            stream_handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
            assert len(stream_handlers) == 1
            assert isinstance(stream_handlers[0].formatter, StructuredFormatter)
            assert logging.getLogger("sqlalchemy").level == logging.WARNING
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
            for handler in previous:
                root.addHandler(handler)
