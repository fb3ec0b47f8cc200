from propcomms.messaging.models.archive import ThreadArchive
from propcomms.messaging.models.attachment import MessageAttachment
from propcomms.messaging.models.escalation import ThreadEscalation
from propcomms.messaging.models.message import Message
from propcomms.messaging.models.participant import ThreadParticipant
from propcomms.messaging.models.read_receipt import ReadReceipt
from propcomms.messaging.models.thread import MessageThread

__all__ = [
    "Message",
    "MessageAttachment",
    "MessageThread",
    "ReadReceipt",
    "ThreadArchive",
    "ThreadEscalation",
    "ThreadParticipant",
]
