class ChannelDeliveryError(Exception):
    """A transport rejected or failed a single notification attempt.

    Raised by transports and caught by the dispatcher, which records the
    attempt as failed. It is never surfaced to the author of the message.
    """

    def __init__(self, channel: str, message: str):
        self.channel = channel
        self.message = message
        super().__init__(f"{channel}: {message}")
