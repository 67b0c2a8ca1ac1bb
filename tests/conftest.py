# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory record and artifact stores with sample spreadsheet rows
# - A scripted model client that replays canned responses
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from unittest.mock import AsyncMock

import pytest

from agents.model_client import ModelClient, ModelResponse
from core.services.record_store import (
    INVOICES,
    PRICE_LIST,
    PURCHASE_ORDERS,
    InMemoryRecordStore,
    RecordStore,
    RecordStoreError,
)
from core.services.storage_service import InMemoryArtifactStore
from lib.memory import FunctionCall

OWNER_ID = "owner-test-0001"


# =============================================================================
# Model Doubles
# =============================================================================

class ScriptedModelClient(ModelClient):
    """
    Replays queued responses, one per generate() call.

    A queued Exception is raised instead of returned. Every call records the
    messages it was given so tests can inspect what the model saw.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def generate(self, instructions, history, declarations):
        self.calls.append({
            "instructions": instructions,
            "messages": history.to_openai_messages(instructions),
            "declarations": [d.name for d in declarations],
        })
        if not self.responses:
            raise AssertionError("ScriptedModelClient ran out of responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def text_response(text):
    return ModelResponse(text=text, finish_reason="stop")


def call_response(*calls, text=""):
    """ModelResponse requesting calls given as (name, args) pairs."""
    return ModelResponse(
        text=text,
        function_calls=[
            FunctionCall(id=f"call_{i}", name=name, args=args)
            for i, (name, args) in enumerate(calls, start=1)
        ],
        finish_reason="tool_calls",
    )


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def purchase_order_rows():
    """Purchase order sheet rows with mixed date encodings."""
    return [
        {
            "Supplier Name": "Huolto-Karhu Oy",
            "Description": "Kattoremontti",
            "Receive By": "2024-06-18",
            "Buyer Name": "Erika Sundström",
            "Total": "1 250,50 €",
        },
        {
            "Supplier Name": "TechCorp",
            "Description": "LED-valaisimet 10kpl",
            "Receive By": "18.07.2024",
            "Buyer Name": "Mikael Lahtinen",
            "Total": 480,
        },
        {
            "Supplier Name": "Kiinteistöpalvelut Lahtinen",
            "Description": "Putkiston huolto",
            "Receive By": 45505,  # 2024-08-01 as a spreadsheet serial
            "Buyer Name": "Erika Sundström",
            "Total": 2200,
        },
        {
            "Supplier Name": "Huolto-Karhu Oy",
            "Description": "Sähkötyöt",
            "Receive By": "",
            "Buyer Name": "Mikael Lahtinen",
            "Total": 300,
        },
    ]


@pytest.fixture
def invoice_rows():
    """Invoice sheet rows using alternative headers."""
    return [
        {
            "Client Name": "Asunto Oy Kukkakatu",
            "Service": "Siivouspalvelut",
            "Invoice Date": "2024-05-02",
            "Payment Due": "2024-06-01",
            "Approved By": "Erika",
            "Status": "Paid",
            "Invoice #": "INV-1001",
            "Invoice Amount": "1.200,00",
        },
        {
            "Client Name": "Kiinteistö Oy Metsäkoti",
            "Service": "Kattoremontti",
            "Invoice Date": "2024-06-10",
            "Payment Due": "2024-07-10",
            "Approved By": "Mikael",
            "Status": "Pending",
            "Invoice #": "INV-1002",
            "Invoice Amount": "€ 15 400,00",
        },
        {
            "Client Name": "Taloyhtiö Oy Ranta",
            "Service": "Sähkötyöt",
            "Invoice Date": "6/20/2024",
            "Payment Due": "7/20/2024",
            "Approved By": "Talousosasto",
            "Status": "Overdue",
            "Invoice #": "INV-1003",
            "Invoice Amount": "n/a",
        },
    ]


@pytest.fixture
def price_list_rows():
    """Finnish price list rows."""
    return [
        {"Tuote": "LED-valaisin 12W", "Hinnasto": "Sähkö 2024", "Toimittaja": "TechCorp", "Myyntihinta": "24,90"},
        {"Tuote": "LED-nauha 5m", "Hinnasto": "Sähkö 2024", "Toimittaja": "TechCorp", "Myyntihinta": "39,00"},
        {"Tuote": "Kattotiili", "Hinnasto": "Rakennus 2024", "Toimittaja": "Huolto-Karhu Oy", "Myyntihinta": "2,15"},
    ]


# =============================================================================
# Stores
# =============================================================================

@pytest.fixture
def record_store(purchase_order_rows, invoice_rows, price_list_rows):
    """In-memory store holding one batch per domain for OWNER_ID."""
    store = InMemoryRecordStore()
    store.add_batch(OWNER_ID, PURCHASE_ORDERS, purchase_order_rows)
    store.add_batch(OWNER_ID, INVOICES, invoice_rows)
    store.add_batch(OWNER_ID, PRICE_LIST, price_list_rows)
    return store


class FailingStore(RecordStore):
    """Record store whose backend is down."""

    async def list_records(self, owner_id, domain):
        raise RecordStoreError("connection refused", suggestion="Check Supabase")

    async def put_record(self, collection_key, record_id, record):
        raise RecordStoreError("connection refused")


@pytest.fixture
def empty_store():
    return InMemoryRecordStore()


@pytest.fixture
def artifact_store():
    return InMemoryArtifactStore()


@pytest.fixture
def no_sleep():
    """Replacement for asyncio.sleep that records delays without waiting."""
    return AsyncMock(return_value=None)
