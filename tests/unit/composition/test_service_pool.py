import pytest

from strata.composition import ResolutionError, ServicePool


class FakeRepository:
    pass


class FakeSqlRepository(FakeRepository):
    pass


class FakeMemoryRepository(FakeRepository):
    pass


def test_of_keys_instances_by_their_class():
    repository = FakeSqlRepository()
    pool = ServicePool.of(repository)

    assert pool.get(FakeSqlRepository) is repository
    assert list(pool) == [FakeSqlRepository]
    assert len(pool) == 1


def test_base_type_lookup_uses_the_first_registered_subclass():
    sql, memory = FakeSqlRepository(), FakeMemoryRepository()
    pool = ServicePool.of(sql, memory)

    assert pool.get(FakeRepository) is sql
    assert FakeRepository in pool


def test_exact_key_wins_over_subclass():
    sql, base = FakeSqlRepository(), FakeRepository()
    pool = ServicePool.of(sql).add_instance(FakeRepository, base)

    assert pool.get(FakeRepository) is base


def test_factory_runs_on_every_lookup():
    calls = []

    def acquire():
        calls.append(1)
        return FakeRepository()

    pool = ServicePool().add_factory(FakeRepository, acquire)

    assert pool.get(FakeRepository) is not pool.get(FakeRepository)
    assert len(calls) == 2


def test_instance_replaces_factory_and_keeps_position():
    pool = ServicePool().add_factory(FakeRepository, FakeRepository)
    repository = FakeRepository()

    pool.add_instance(FakeRepository, repository)

    assert pool.get(FakeRepository) is repository
    assert list(pool) == [FakeRepository]


def test_missing_service():
    pool = ServicePool()

    assert pool.get(FakeRepository) is None
    assert pool.get(FakeRepository, "fallback") == "fallback"
    assert FakeRepository not in pool
    assert "FakeRepository" not in pool
    with pytest.raises(ResolutionError):
        pool.get_required(FakeRepository)
