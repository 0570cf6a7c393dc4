"""
Record layout for streams and consumer groups.

All internal records live under the "_dynastream" namespace:

    stream item     <key>                          / <xid>
    watermark       _dynastream/seq/<key>          / seq
    sequence        _dynastream/xcount/<key>       / /
    group cursor    _dynastream/<key>/<group>      / _dynastream/cursor
    pending entry   _dynastream/<key>/<group>      / <xid>

"_" sorts after every digit, so the cursor's sort key falls outside
[XSTART, XEND] and XID-bounded queries of a group partition see only pending
entries.
"""

from ..store.base import KeyDef

NAMESPACE = "_dynastream"

# Single-value records keep their value here
VALUE_ATTR = "val"

# Pending entry attributes
CONSUMER_ATTR = "cnk"
LAST_DELIVERED_ATTR = "ldk"
DELIVERY_COUNT_ATTR = "dck"

# Caller fields on stream items carry this prefix
FIELD_PREFIX = "_"


def watermark_key(key: str) -> KeyDef:
    return KeyDef(pk="/".join([NAMESPACE, "seq", key]), sk="seq")


def sequence_key(key: str) -> KeyDef:
    return KeyDef(pk="/".join([NAMESPACE, "xcount", key]), sk="/")


def group_partition(key: str, group: str) -> str:
    return "/".join([NAMESPACE, key, group])


def cursor_key(key: str, group: str) -> KeyDef:
    return KeyDef(pk=group_partition(key, group), sk=NAMESPACE + "/cursor")


def pending_key(key: str, group: str, xid: str) -> KeyDef:
    return KeyDef(pk=group_partition(key, group), sk=str(xid))


def item_key(key: str, xid: str) -> KeyDef:
    return KeyDef(pk=key, sk=str(xid))
