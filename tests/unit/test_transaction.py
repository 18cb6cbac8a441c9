"""Tests for TransactWriteItems building and error translation."""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from customer_lookup.exceptions import PhoneConflictError, TransportError
from customer_lookup.models import (
    CustomerRecord,
    DeleteUnconditional,
    InsertIfAbsent,
    IntentTarget,
    TableKey,
    UpdateRequest,
)
from customer_lookup.planner import plan_update
from customer_lookup.transaction import (
    build_transact_item,
    build_transact_items,
    cancellation_reasons,
    is_condition_check_failure,
    translate_client_error,
)

OLD = CustomerRecord(customer_id="C1", name="Jane Doe", phone="555-0100")
PHONE_CHANGE = plan_update(
    OLD, UpdateRequest("C1", "Jane Doe", "555-0200", address="A", email="e@x.com")
)


def _client_error(code: str, message: str = "boom", reasons: list[str] | None = None) -> ClientError:
    response: dict = {"Error": {"Code": code, "Message": message}}
    if reasons is not None:
        response["CancellationReasons"] = [{"Code": r} for r in reasons]
    return ClientError(response, "TransactWriteItems")


class TestBuildTransactItems:
    """Tests for the wire format of planned intents."""

    def test_put_with_condition(self) -> None:
        item = build_transact_item("customers", PHONE_CHANGE[1])

        assert item == {
            "Put": {
                "TableName": "customers",
                "Item": {
                    "PK": {"S": "CUSTOMER_PHONE#555-0200"},
                    "SK": {"S": "LOCK"},
                    "customerId": {"S": "C1"},
                },
                "ConditionExpression": "attribute_not_exists(PK)",
            }
        }

    def test_primary_put_is_flat(self) -> None:
        item = build_transact_item("customers", PHONE_CHANGE[0])["Put"]

        assert item["ConditionExpression"] == "attribute_exists(PK)"
        assert item["Item"] == {
            "PK": {"S": "CUSTOMER"},
            "SK": {"S": "C1"},
            "customerId": {"S": "C1"},
            "name": {"S": "Jane Doe"},
            "address": {"S": "A"},
            "email": {"S": "e@x.com"},
            "phone": {"S": "555-0200"},
        }

    def test_lookup_put_nests_info(self) -> None:
        item = build_transact_item("customers", PHONE_CHANGE[2])["Put"]["Item"]
        assert item["SK"] == {"S": "555-0200#JANE_DOE"}
        assert item["Info"]["M"]["phone"] == {"S": "555-0200"}

    def test_optional_fields_omitted(self) -> None:
        intents = plan_update(OLD, UpdateRequest("C1", "Jane Doe", "555-0100"))
        primary = build_transact_item("customers", intents[0])["Put"]["Item"]
        lookup = build_transact_item("customers", intents[1])["Put"]["Item"]

        assert "address" not in primary
        assert "email" not in primary
        assert set(lookup["Info"]["M"]) == {"customerId", "name", "phone"}

    def test_delete_is_unconditional(self) -> None:
        item = build_transact_item("customers", PHONE_CHANGE[3])

        assert item == {
            "Delete": {
                "TableName": "customers",
                "Key": {"PK": {"S": "CUSTOMER_PHONE#555-0100"}, "SK": {"S": "LOCK"}},
            }
        }

    def test_order_preserved(self) -> None:
        items = build_transact_items("customers", PHONE_CHANGE)
        assert [next(iter(i)) for i in items] == ["Put", "Put", "Put", "Delete", "Delete"]

    def test_too_many_items(self) -> None:
        intents = [
            DeleteUnconditional(IntentTarget.LOOKUP, TableKey("CUSTOMER_LOOKUP", str(n)))
            for n in range(101)
        ]
        with pytest.raises(ValueError, match="DynamoDB allows 100"):
            build_transact_items("customers", intents)


class TestConditionCheckDetection:
    """Tests for is_condition_check_failure."""

    def test_canceled_with_condition_reason(self) -> None:
        exc = _client_error(
            "TransactionCanceledException",
            reasons=["None", "ConditionalCheckFailed", "None"],
        )
        assert is_condition_check_failure(exc)
        assert cancellation_reasons(exc) == ["None", "ConditionalCheckFailed", "None"]

    def test_canceled_without_reasons(self) -> None:
        assert is_condition_check_failure(_client_error("TransactionCanceledException"))

    def test_canceled_for_other_reason(self) -> None:
        exc = _client_error(
            "TransactionCanceledException",
            reasons=["None", "TransactionConflict"],
        )
        assert not is_condition_check_failure(exc)

    def test_plain_conditional_check(self) -> None:
        assert is_condition_check_failure(_client_error("ConditionalCheckFailedException"))

    def test_other_errors(self) -> None:
        assert not is_condition_check_failure(_client_error("ThrottlingException"))
        assert not is_condition_check_failure(ValueError("nope"))


class TestTranslateClientError:
    """Tests for translate_client_error."""

    def test_conflict_reports_failed_intents(self) -> None:
        exc = _client_error(
            "TransactionCanceledException",
            reasons=["None", "ConditionalCheckFailed", "None", "None", "None"],
        )

        error = translate_client_error(exc, "C1", PHONE_CHANGE)

        assert isinstance(error, PhoneConflictError)
        assert error.customer_id == "C1"
        assert error.failed == [PHONE_CHANGE[1]]
        assert isinstance(error.failed[0], InsertIfAbsent)
        assert "CUSTOMER_PHONE#555-0200/LOCK" in str(error)

    def test_conflict_without_reasons(self) -> None:
        error = translate_client_error(
            _client_error("TransactionCanceledException"), "C1", PHONE_CHANGE
        )
        assert isinstance(error, PhoneConflictError)
        assert error.failed == []

    def test_transport_error_keeps_engine_message(self) -> None:
        exc = _client_error("ProvisionedThroughputExceededException", "Rate exceeded")

        error = translate_client_error(exc, "C1", PHONE_CHANGE)

        assert isinstance(error, TransportError)
        assert str(error) == "Rate exceeded"
        assert error.code == "ProvisionedThroughputExceededException"
        assert error.cause is exc

    def test_transaction_conflict_is_transport_error(self) -> None:
        exc = _client_error(
            "TransactionCanceledException",
            "Transaction cancelled [None, TransactionConflict]",
            reasons=["None", "TransactionConflict"],
        )
        error = translate_client_error(exc, "C1", PHONE_CHANGE)
        assert isinstance(error, TransportError)

    def test_botocore_error(self) -> None:
        exc = EndpointConnectionError(endpoint_url="http://localhost:1")
        error = translate_client_error(exc, "C1", PHONE_CHANGE)

        assert isinstance(error, TransportError)
        assert "localhost:1" in str(error)

    def test_unknown_exception_passes_through(self) -> None:
        exc = RuntimeError("unexpected")
        assert translate_client_error(exc, "C1", PHONE_CHANGE) is exc
