import json
import logging

from app.core.logging import (
    AadhaarMaskingFilter,
    DevelopmentFormatter,
    LogContext,
    StructuredFormatter,
    mask_aadhaar,
)


def make_record(msg, *args):
    return logging.getLogger("udyam.test").makeRecord("udyam.test", logging.INFO, __file__, 1, msg, args, None)


def test_mask_aadhaar():
    assert mask_aadhaar("123456789012") == "********9012"
    assert mask_aadhaar("") == ""


def test_filter_masks_aadhaar_in_message_but_not_session_ids():
    record = make_record("Aadhaar %s for udyam_1734567890123_abc123xyz", "123456789012")
    AadhaarMaskingFilter().filter(record)
    assert record.getMessage() == "Aadhaar ********9012 for udyam_1734567890123_abc123xyz"


def test_context_reaches_both_formatters():
    with LogContext(session_id="udyam_1_x", step_number=2, field=None):
        record = make_record("Step recorded")

    structured = json.loads(StructuredFormatter().format(record))
    assert structured["session_id"] == "udyam_1_x"
    assert structured["step_number"] == 2
    assert "field" not in structured

    assert "[session=udyam_1_x, step=2]" in DevelopmentFormatter().format(record)


def test_context_is_removed_on_exit():
    with LogContext(session_id="udyam_1_x"):
        pass
    assert not hasattr(make_record("outside"), "session_id")


def test_nested_contexts_merge_and_factory_is_installed_once():
    with LogContext(session_id="udyam_1_x"):
        factory = logging.getLogRecordFactory()
        with LogContext(step_number=2):
            inner = make_record("inner")
            assert logging.getLogRecordFactory() is factory
        outer = make_record("outer")

    assert (inner.session_id, inner.step_number) == ("udyam_1_x", 2)
    assert outer.session_id == "udyam_1_x"
    assert not hasattr(outer, "step_number")
    assert logging.getLogRecordFactory() is factory
