import pytest

from shorelux_backoffice.resources import (
    EXPENSES,
    OTHER_INCOME,
    SALARY_EXPENSES,
    EditableResource,
    get_resource,
)


def test_base_resource_cannot_be_built():
    with pytest.raises(TypeError):
        EditableResource(name="x", label="X", verification_type="x_edit", list_path="list-x",
                         update_path="update-x", date_field="date", editable_fields=["amount"])


def test_snapshot_keeps_file_fields_as_none():
    snap = EXPENSES.snapshot({"id": 7, "date": "2024-06-10", "category": "Laundry", "amount": 250,
                              "description": None, "bill_file": None})
    assert snap["description"] == ""
    assert snap["bill_file"] is None
    assert snap["category"] == "Laundry"


def test_otp_category():
    assert EXPENSES.otp_category({"category": "Mess"}) == "Mess"
    assert SALARY_EXPENSES.otp_category({"category": "ignored"}) == "Salary"
    assert OTHER_INCOME.otp_category({"category": "Other Income"}) is None


def test_unknown_resource():
    assert get_resource("sales").verification_type == "sales_income_edit"
    with pytest.raises(ValueError):
        get_resource("stock")
