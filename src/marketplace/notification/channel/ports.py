"""Channel ports: abstract interfaces for outbound message delivery.

Every adapter returns a dict with ``status`` ("sent" or "failed"), an id
for the delivered artefact, and ``error`` on failure.
"""

from abc import ABC, abstractmethod


class SMSPort(ABC):
    @abstractmethod
    def send(self, to: str, body: str) -> dict:
        """Send an SMS message."""
        ...


class EmailPort(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> dict:
        """Send an email message."""
        ...


class InvoicePort(ABC):
    @abstractmethod
    def request_invoice(self, order_id: str) -> dict:
        """Ask the document service to render and store the PDF invoice for an order."""
        ...
