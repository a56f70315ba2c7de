"""Tests for request-level mapping operations and their error translation."""

from __future__ import annotations

import asyncio

import pytest

from core.allocation import AllocationCoordinator
from repository.mapping_repository import MappingRepository
from service.mapping_service import MappingService
from util.errors import AppError

from conftest import APP_ID


@pytest.fixture
def strict(repo, coordinator) -> MappingService:
    return MappingService(repo, coordinator, arbitrary_target_mode=False)


@pytest.fixture
def lenient(repo, coordinator) -> MappingService:
    return MappingService(repo, coordinator, arbitrary_target_mode=True)


class TestArbitraryTargetMode:
    async def test_new_target_rejected_when_disabled(self, strict, repo):
        with pytest.raises(AppError) as exc:
            await strict.map_object_to_target(APP_ID, "email", "a@b.com", "brand-new")
        assert exc.value.status_code == 400
        assert await repo.find_target_for_object(APP_ID, "email", "a@b.com") is None

    async def test_existing_target_accepted_when_disabled(self, strict, repo):
        await repo.map(APP_ID, "email", "first@b.com", "person-1")
        m = await strict.map_object_to_target(APP_ID, "email", "second@b.com", "person-1")
        assert m.to == "person-1"

    async def test_target_must_exist_in_same_namespace(self, strict, repo):
        await repo.map(APP_ID, "phone", "123", "person-1")
        with pytest.raises(AppError) as exc:
            await strict.map_object_to_target(APP_ID, "email", "a@b.com", "person-1")
        assert exc.value.status_code == 400

    async def test_remap_to_own_target_always_accepted(self, strict, repo):
        await repo.map(APP_ID, "email", "a@b.com", "person-1")
        m = await strict.map_object_to_target(APP_ID, "email", "A@B.COM", "person-1")
        assert m.to == "person-1"

    async def test_conflict_wins_over_unknown_target(self, strict, repo):
        await repo.map(APP_ID, "email", "a@b.com", "person-1")
        with pytest.raises(AppError) as exc:
            await strict.map_object_to_target(APP_ID, "email", "a@b.com", "nobody")
        assert exc.value.status_code == 409

    async def test_new_target_accepted_when_enabled(self, lenient):
        m = await lenient.map_object_to_target(APP_ID, "email", "a@b.com", "brand-new")
        assert m.to == "brand-new"

    async def test_allocation_is_exempt(self, strict):
        target = await strict.allocate_target_and_map(APP_ID, {"email": "a@b.com"})
        assert target == "minted-1"


class TestErrors:
    async def test_conflict_reports_existing_target(self, lenient):
        await lenient.map_object_to_target(APP_ID, "email", "a@b.com", "x")
        with pytest.raises(AppError) as exc:
            await lenient.map_object_to_target(APP_ID, "email", "a@b.com", "y")
        assert exc.value.status_code == 409
        assert exc.value.detail["target"] == "x"

    async def test_allocation_conflict_reports_existing_target(self, lenient):
        await lenient.map_object_to_target(APP_ID, "phone", "1", "y")
        with pytest.raises(AppError) as exc:
            await lenient.allocate_target_and_map(APP_ID, {"email": "a@b.com", "phone": "1"})
        assert exc.value.status_code == 409
        assert exc.value.detail["target"] == "y"

    @pytest.mark.parametrize(
        "ns, obj, target", [("", "a", "t"), ("email", " ", "t"), ("email", "a@b.com", "")]
    )
    async def test_missing_parameters(self, lenient, ns, obj, target):
        with pytest.raises(AppError) as exc:
            await lenient.map_object_to_target(APP_ID, ns, obj, target)
        assert exc.value.status_code == 400

    async def test_object_normalized_to_nothing(self, lenient):
        with pytest.raises(AppError) as exc:
            await lenient.get_mapping_for_object(APP_ID, "phone", "abc")
        assert exc.value.status_code == 400

    async def test_not_found(self, lenient):
        with pytest.raises(AppError) as exc:
            await lenient.get_mapping_for_object(APP_ID, "email", "a@b.com")
        assert exc.value.status_code == 404

    async def test_empty_allocation(self, lenient):
        with pytest.raises(AppError) as exc:
            await lenient.allocate_target_and_map(APP_ID, {})
        assert exc.value.status_code == 400

    async def test_timeout_is_storage_error(self, repo, coordinator, monkeypatch):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        monkeypatch.setattr(MappingRepository, "find_target_for_object", slow)
        service = MappingService(repo, coordinator, timeout_seconds=0.01)
        with pytest.raises(AppError) as exc:
            await service.get_mapping_for_object(APP_ID, "email", "a@b.com")
        assert exc.value.status_code == 500


class TestLookups:
    async def test_get_mapping_normalizes_input(self, lenient):
        await lenient.map_object_to_target(APP_ID, "email", "a@b.com", "x")
        m = await lenient.get_mapping_for_object(APP_ID, " Email ", " A@B.COM ")
        assert m.to == "x"

    async def test_unmap(self, lenient):
        await lenient.map_object_to_target(APP_ID, "email", "a@b.com", "x")
        assert await lenient.unmap_object_to_target(APP_ID, "email", "a@b.com", "y") is False
        assert await lenient.unmap_object_to_target(APP_ID, "email", "a@b.com", "x") is True
        assert await lenient.unmap_object_to_target(APP_ID, "email", "a@b.com", "x") is False

    async def test_reverse_mappings_per_namespace(self, lenient):
        await lenient.allocate_target_and_map(
            APP_ID, {"email": "a@b.com", "phone": "0123"}, target="p1"
        )
        await lenient.map_object_to_target(APP_ID, "email", "c@d.com", "p1")
        found = await lenient.get_reverse_mappings_for_target(
            APP_ID, "email; PHONE,,  fax email", "p1"
        )
        assert list(found) == ["email", "phone", "fax"]
        assert [m.from_ for m in found["email"]] == ["a@b.com", "c@d.com"]
        assert [m.from_ for m in found["phone"]] == ["123"]
        assert found["fax"] == []

    async def test_reverse_mappings_require_namespace(self, lenient):
        with pytest.raises(AppError) as exc:
            await lenient.get_reverse_mappings_for_target(APP_ID, " ", "p1")
        assert exc.value.status_code == 400


class TestCoordinatorWiring:
    async def test_supplied_target_used(self, repo):
        service = MappingService(repo, AllocationCoordinator(repo), arbitrary_target_mode=False)
        assert await service.allocate_target_and_map(APP_ID, {"email": "a@b.com"}, "mine") == "mine"

    async def test_blank_supplied_target_means_mint(self, repo):
        service = MappingService(repo, AllocationCoordinator(repo, id_generator=lambda: "new"))
        assert await service.allocate_target_and_map(APP_ID, {"email": "a@b.com"}, "  ") == "new"
