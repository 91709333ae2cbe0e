"""Tests for the CSV ingestion pipeline."""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from cardledger.db.operations import list_cards
from cardledger.db.store import CardStore
from cardledger.models.card import RARITY_SCHEME, TCG_SCHEME, Card
from cardledger.services.ingestion import IngestionPipeline, decode_upload
from cardledger.services.reconciliation import CardReconciler

HEADER = "name,set,condition,tcg,estimatedvalue,qty\n"


class TestValidate:
    def test_end_to_end_scenario(self) -> None:
        """Trailing all-blank row is skipped, not counted as an error."""
        text = "name,set,condition,tcg,estimatedvalue,qty\nPikachu,Jungle,NM,Pokemon,15.50,4\n,,,,,"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.success is True
        assert report.total_processed == 1
        assert report.total_errors == 0
        assert report.errors is None
        assert report.cards is not None
        card = report.cards[0]
        assert card.name == "Pikachu"
        assert card.estimated_value == 15.5
        assert card.quantity == 4
        assert card.category == "Pokemon"

    def test_cards_get_ids_and_ingestion_time(self) -> None:
        report = IngestionPipeline(TCG_SCHEME).validate(
            HEADER + "A,S,NM,Magic,1,1\nB,S,NM,Magic,2,1\n"
        )

        assert report.cards is not None
        first, second = report.cards
        assert first.id != second.id
        assert first.date_added == second.date_added

    def test_failed_row_number_counts_header(self) -> None:
        """Third data row failing is reported as file row 4."""
        text = HEADER + "A,S,NM,Magic,1,1\nB,S,NM,Magic,2,1\nC,S,MINT,Magic,3,1\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.errors is not None
        assert [error.row for error in report.errors] == [4]

    def test_row_numbers_independent_of_earlier_failures(self) -> None:
        text = HEADER + "A,S,BAD,Magic,1,1\nB,S,NM,Magic,2,1\nC,S,NM,Magic,-3,1\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.errors is not None
        assert [error.row for error in report.errors] == [2, 4]
        assert report.cards is not None
        assert [card.name for card in report.cards] == ["B"]

    def test_partial_batch_keeps_valid_cards(self) -> None:
        text = HEADER + "A,S,NM,Magic,1,1\nB,S,NM,Magic,oops,1\nC,S,NM,Magic,3,1\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.success is False
        assert report.total_processed == 2
        assert report.total_errors == 1
        assert report.cards is not None
        assert [card.name for card in report.cards] == ["A", "C"]

    def test_row_message_joins_every_violation(self) -> None:
        text = HEADER + "A,,MINT,Magic,-1,1\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.errors is not None
        message = report.errors[0].message
        parts = message.split("; ")
        assert len(parts) == 3
        assert parts[0].startswith("set: ")
        assert any(part.startswith("condition: ") for part in parts)
        assert any(part.startswith("estimatedValue: ") for part in parts)

    def test_all_rows_invalid(self) -> None:
        text = HEADER + "A,S,MINT,Magic,1,1\nB,S,EX,Magic,1,1\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.success is False
        assert report.cards == []
        assert report.total_errors == 2

    def test_structural_errors_abort_validation(self) -> None:
        text = HEADER + "A,S,MINT,Magic,1,1\nB,S,NM\n"

        report = IngestionPipeline(TCG_SCHEME).validate(text)

        assert report.success is False
        assert report.cards is None
        assert report.total_processed == 0
        assert report.errors is not None
        assert len(report.errors) == 1
        assert "Too few fields" in report.errors[0].message

    def test_missing_category_column_uses_default(self) -> None:
        text = "name,set,condition,value\nA,S,NM,1\n"

        report = IngestionPipeline(RARITY_SCHEME).validate(text)

        assert report.cards is not None
        assert report.cards[0].category == "Common"
        assert report.cards[0].quantity == 1

    def test_produced_cards_satisfy_card_contract(self) -> None:
        report = IngestionPipeline(TCG_SCHEME).validate(HEADER + "A,S,NM,Magic,1,1\n")

        assert report.cards is not None
        card = report.cards[0]
        assert Card.model_validate(card.to_json(), context={"scheme": TCG_SCHEME}) == card


class TestDecodeUpload:
    def test_strips_bom_from_bytes(self) -> None:
        assert decode_upload("\ufeffname".encode()) == "name"

    def test_passes_text_through(self) -> None:
        assert decode_upload("name") == "name"


class TestIngest:
    async def test_without_reconciler_only_validates(self) -> None:
        outcome = await IngestionPipeline(TCG_SCHEME).ingest((HEADER + "A,S,NM,Magic,1,1\n").encode())

        assert outcome.report.success
        assert outcome.persistence is None
        assert outcome.report.cards is not None
        assert len(outcome.report.cards) == 1

    async def test_invalid_utf8_is_rejected(self) -> None:
        outcome = await IngestionPipeline(TCG_SCHEME).ingest(b"name\n\xff\xfe\xfa\n")

        assert outcome.report.success is False
        assert outcome.report.cards is None
        assert outcome.report.errors is not None
        assert outcome.report.errors[0].row == 0

    async def test_persists_valid_cards(self, store: CardStore) -> None:
        pipeline = IngestionPipeline(TCG_SCHEME, CardReconciler(store))

        outcome = await pipeline.ingest(HEADER + "A,S,NM,Magic,1,2\nB,S,BAD,Magic,1,1\n")

        assert outcome.persistence is not None
        assert len(outcome.persistence.inserted) == 1
        async with store.session() as session:
            rows = await list_cards(session)
        assert [(row.name, row.quantity) for row in rows] == [("A", 2)]

    async def test_nothing_persisted_when_no_valid_cards(self, store: CardStore) -> None:
        pipeline = IngestionPipeline(TCG_SCHEME, CardReconciler(store))

        outcome = await pipeline.ingest(HEADER + "B,S,BAD,Magic,1,1\n")

        assert outcome.persistence is None

    async def test_store_failure_does_not_change_report(
        self,
        store: CardStore,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A broken store is logged; the uploader still gets the validated cards."""

        async def broken_reconcile(self: CardReconciler, cards: list[Card]) -> None:
            raise RuntimeError("store exploded")

        monkeypatch.setattr(CardReconciler, "reconcile", broken_reconcile)
        pipeline = IngestionPipeline(TCG_SCHEME, CardReconciler(store))

        with caplog.at_level(logging.ERROR):
            outcome = await pipeline.ingest(HEADER + "A,S,NM,Magic,1,1\n")

        assert outcome.report.success is True
        assert outcome.report.total_processed == 1
        assert outcome.persistence is None
        assert "Reconciliation failed" in caplog.text

    async def test_per_card_store_failure_is_internal_only(
        self, store: CardStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from cardledger.services import reconciliation

        original_insert = reconciliation.insert_card

        async def flaky_insert(session, card):  # type: ignore[no-untyped-def]
            if card.name == "Broken":
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return await original_insert(session, card)

        monkeypatch.setattr(reconciliation, "insert_card", flaky_insert)
        pipeline = IngestionPipeline(TCG_SCHEME, CardReconciler(store))

        outcome = await pipeline.ingest(HEADER + "Broken,S,NM,Magic,1,1\nFine,S,NM,Magic,1,1\n")

        assert outcome.report.success is True
        assert outcome.report.total_processed == 2
        assert outcome.persistence is not None
        assert len(outcome.persistence.failures) == 1
        assert outcome.persistence.failures[0].identity == ("Broken", "S", "NM")
        assert len(outcome.persistence.inserted) == 1
