from enum import Enum


class Direction(str, Enum):
    SEND = "send"
    RECEIVE = "receive"
    UNKNOWN = "unknown"


class TransactionType(str, Enum):
    SWAP = "swap"
    SEND = "send"
    RECEIVE = "receive"
    APPROVAL = "approval"
    CONTRACT = "contract"
    UNKNOWN = "unknown"


class TxStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"
