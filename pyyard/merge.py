"""
 Record Merger

 The public and internal Husqvarna APIs share no identifier: the public API
 uses a UUID, the internal one a serial-based id. The two mower lists are
 therefore joined by position, on the assumption that both services return
 the account's mowers in the same order. That ordering dependency is the
 contract of merge_positional(); the checks below make a violated assumption
 fail the merge instead of pairing the wrong mowers.
"""
import logging

from pyyard.exceptions import PyYardMergeError

log = logging.getLogger(__name__)


def merge_positional(external: list, internal: list) -> list:
    """
    Merge two lists of partial records describing the same devices.

    Element i of external is combined with element i of internal. Keys from
    the internal fragment are added to the external record; an external key
    is never overwritten.

    Raises PyYardMergeError if the lists differ in length, if both sides carry
    a serial number and they differ, or if a (manufacturer, device_id) pair
    repeats in the result.
    """
    if len(external) != len(internal):
        raise PyYardMergeError(f"Cannot pair {len(external)} external with {len(internal)} internal records")

    merged = []
    seen = set()
    for idx, (ext, inter) in enumerate(zip(external, internal)):
        ext_serial = ext.get("serial_no")
        int_serial = inter.get("serial_no")
        if ext_serial is not None and int_serial is not None and str(ext_serial) != str(int_serial):
            raise PyYardMergeError(f"Serial mismatch at position {idx}: {ext_serial} != {int_serial}")

        record = dict(ext)
        for key, value in inter.items():
            record.setdefault(key, value)

        key = (record.get("manufacturer"), record.get("device_id"))
        if key in seen:
            raise PyYardMergeError(f"Duplicate device {key[0]}/{key[1]} at position {idx}")
        seen.add(key)
        merged.append(record)

    log.debug(f"Merged {len(merged)} record(s) by position")
    return merged
