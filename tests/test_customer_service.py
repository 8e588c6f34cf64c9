"""Tests for CustomerService: CRUD, uniqueness and search."""

from __future__ import annotations

import pytest

from liquipay.api.v1.customers.schemas import CreateCustomerRequest, UpdateCustomerRequest
from liquipay.api.v1.customers.service import CustomerService
from liquipay.core.exceptions import DomainValidationError, UniquenessConflictError


def _request(cls=CreateCustomerRequest, **overrides):
    data = {
        "last_name": "DOE",
        "first_name": "John",
        "address": "Cotonou",
        "ifu": "IFU001",
        "phone": "+22997000000",
        "email": "a@x.com",
    }
    data.update(overrides)
    return cls(**data)


class TestCreate:
    async def test_create(self, db) -> None:
        customer = await CustomerService(db).create_customer(_request())
        assert customer.id is not None
        assert customer.ifu == "IFU001"
        assert customer.email == "a@x.com"

    async def test_duplicate_ifu(self, db) -> None:
        service = CustomerService(db)
        await service.create_customer(_request())
        with pytest.raises(UniquenessConflictError):
            await service.create_customer(_request(email="b@x.com"))

    async def test_duplicate_email(self, db) -> None:
        service = CustomerService(db)
        await service.create_customer(_request())
        with pytest.raises(UniquenessConflictError):
            await service.create_customer(_request(ifu="IFU002"))


class TestUpdate:
    async def test_unknown_customer(self, db) -> None:
        assert await CustomerService(db).update_customer(999, _request(UpdateCustomerRequest)) is None

    async def test_keeping_own_ifu_is_allowed(self, db) -> None:
        service = CustomerService(db)
        customer = await service.create_customer(_request())
        updated = await service.update_customer(customer.id, _request(UpdateCustomerRequest, address="Porto-Novo"))
        assert updated.address == "Porto-Novo"

    async def test_taking_another_ifu_conflicts(self, db) -> None:
        service = CustomerService(db)
        await service.create_customer(_request())
        other = await service.create_customer(_request(ifu="IFU002", email="b@x.com"))
        with pytest.raises(UniquenessConflictError):
            await service.update_customer(other.id, _request(UpdateCustomerRequest, email="b@x.com"))


class TestDelete:
    async def test_delete(self, db) -> None:
        service = CustomerService(db)
        customer = await service.create_customer(_request())
        assert await service.delete_customer(customer.id) is True
        assert await service.get_customer(customer.id) is None

    async def test_unknown(self, db) -> None:
        assert await CustomerService(db).delete_customer(999) is False

    async def test_referenced_by_liquidation(self, db, make_customer, make_liquidation) -> None:
        customer = await make_customer()
        await make_liquidation(customer)
        with pytest.raises(DomainValidationError):
            await CustomerService(db).delete_customer(customer.id)


class TestSearch:
    async def test_case_insensitive(self, db) -> None:
        service = CustomerService(db)
        await service.create_customer(_request())
        await service.create_customer(_request(last_name="DUPONT", first_name="Alice", ifu="IFU002", email="b@x.com"))
        items, total = await service.search_customers("dupo")
        assert total == 1
        assert items[0].first_name == "Alice"

    async def test_blank_term_lists_all(self, db) -> None:
        service = CustomerService(db)
        await service.create_customer(_request())
        _, total = await service.search_customers("  ")
        assert total == 1
