import json

import pytest

from strata.config import AmbientConfiguration


@pytest.fixture
def document():
    return AmbientConfiguration(
        {
            "Shop": {"Currency": "EUR", "Regions": [{"Name": "north"}, {"Name": "south"}]},
            "Architecture": {"Modules": [{"Contract": "IOrderManager"}]},
        }
    )


def test_path_lookup_is_case_insensitive(document):
    assert document.get("Shop:Currency") == "EUR"
    assert document.get("shop:currency") == "EUR"
    assert document["SHOP:Currency"] == "EUR"


def test_integer_segments_index_lists(document):
    assert document.get("Shop:Regions:1:Name") == "south"
    assert document.get("Shop:Regions:5:Name", "none") == "none"


def test_missing_paths(document):
    assert document.get("Shop:Language") is None
    assert document.get("Shop:Currency:Symbol", "?") == "?"
    assert "Shop:Language" not in document
    assert "Shop:Currency" in document
    assert 42 not in document
    with pytest.raises(KeyError):
        document["Shop:Language"]


def test_section(document):
    architecture = document.section("architecture")

    assert architecture.get("Modules:0:Contract") == "IOrderManager"
    assert document.section("Shop:Currency").as_dict() == {}
    assert document.section("Missing").as_dict() == {}


def test_documents_are_copied():
    source = {"Shop": {"Currency": "EUR"}}
    document = AmbientConfiguration.from_mapping(source)

    source["Shop"]["Currency"] = "USD"
    document.as_dict()["Shop"]["Currency"] = "GBP"

    assert document.get("Shop:Currency") == "EUR"


def test_mapping_protocol(document):
    assert set(document) == {"Shop", "Architecture"}
    assert len(document) == 2


def test_merged_overlays_nested_values(document):
    merged = document.merged({"shop": {"currency": "USD", "Language": "en"}})

    assert merged.get("Shop:Currency") == "USD"
    assert merged.get("Shop:Language") == "en"
    assert merged.get("Shop:Regions:0:Name") == "north"
    assert document.get("Shop:Currency") == "EUR"


def test_from_sources_merges_in_order():
    document = AmbientConfiguration.from_sources(
        {"Shop": {"Currency": "EUR", "Tax": 20}},
        {"Shop": {"Currency": "USD"}},
    )

    assert document.get("Shop:Currency") == "USD"
    assert document.get("Shop:Tax") == 20


def test_from_sources_overlays_prefixed_environment():
    document = AmbientConfiguration.from_sources(
        {"Shop": {"Currency": "EUR"}},
        env_prefix="APP_",
        environ={"APP_SHOP__CURRENCY": "CHF", "APP_MODE": "test", "OTHER": "x"},
    )

    assert document.get("Shop:Currency") == "CHF"
    assert document.get("Mode") == "test"
    assert "OTHER" not in document


def test_from_sources_reads_os_environ(monkeypatch):
    monkeypatch.setenv("STRATA_TEST_SHOP__CURRENCY", "JPY")

    document = AmbientConfiguration.from_sources(env_prefix="STRATA_TEST_")

    assert document.get("Shop:Currency") == "JPY"


def test_from_json_file(tmp_path):
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps({"Shop": {"Currency": "EUR"}}))

    assert AmbientConfiguration.from_json_file(path).get("Shop:Currency") == "EUR"


def test_from_json_file_requires_an_object(tmp_path):
    path = tmp_path / "appsettings.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError):
        AmbientConfiguration.from_json_file(path)
