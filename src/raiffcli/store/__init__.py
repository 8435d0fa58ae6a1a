"""Durable local storage: the transaction queue and the address book."""

from raiffcli.store.address_book import AddressBook, Nationality, RecipientEntry, validate_iban
from raiffcli.store.queue_store import TransactionQueueStore

__all__ = ["AddressBook", "Nationality", "RecipientEntry", "TransactionQueueStore", "validate_iban"]
