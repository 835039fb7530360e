"""Apply an extraction rule to a raw syslog payload."""

from typing import Optional

from wirelog.models import (
    DecodedRecord,
    DecodeFailure,
    DecodeFailureReason,
    ExtractionRule,
    Target,
)


def decode_message(
    data: bytes,
    rule: ExtractionRule,
    default_host: str,
) -> Optional[DecodedRecord]:
    """Split a raw message into record fields using ``rule``.

    The pattern is searched anywhere in the text. Capture group ``i`` is
    assigned to ``rule.captures[i - 1]``; when a target appears more than
    once the last group wins. Groups that did not take part in the match
    are skipped.

    Args:
        data: Raw message bytes
        rule: Extraction rule chosen for the sending device
        default_host: Host label to use when the rule captures no host

    Returns:
        The decoded record, or None when the rule captures no message or
        the message group did not participate in the match

    Raises:
        DecodeFailure: The payload is not UTF-8 or does not match the rule
    """
    # A rule without a message capture suppresses the device entirely
    if not rule.captures_message:
        return None

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeFailure(DecodeFailureReason.INVALID_ENCODING, data) from e

    match = rule.pattern.search(text)
    if match is None:
        raise DecodeFailure(DecodeFailureReason.NO_MATCH, data)

    host = default_host
    category = ""
    timestamp = None
    message = None

    for index, target in enumerate(rule.captures, start=1):
        field = match.group(index)
        if field is None:
            continue
        if target is Target.HOST:
            host = "local." + field
        elif target is Target.CATEGORY:
            category = field
        elif target is Target.TIMESTAMP:
            timestamp = field
        elif target is Target.MESSAGE:
            message = field

    if message is None:
        return None

    return DecodedRecord(host=host, category=category, timestamp=timestamp, message=message)
