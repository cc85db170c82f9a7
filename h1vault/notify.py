import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Shows user-facing notices on the console and records them in the log."""

    def __init__(self, stream=None):
        self.stream = stream

    def notify(self, message):
        logger.info(f"NOTICE: {message}")
        print(message, file=self.stream)
