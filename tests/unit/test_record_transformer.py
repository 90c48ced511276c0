"""
Tests de la transformación FAST2 -> Directus.
"""
import json

import pytest

from fast2_sync.application.services.record_transformer import (
    get_path,
    transform_for,
    transform_property,
    transform_work_order,
)
from fast2_sync.domain.entities import EntityType


@pytest.fixture
def property_node():
    return {
        "id": "OBJ-100",
        "adress": {"adress": "Storgatan 1", "postnummer": "31130", "postort": "Falkenberg"},
        "detalj": {
            "vaning": {"id": 3, "beskrivning": "Plan 2", "nummer": 2},
            "hiss": True,
            "yta": 54.5,
            "hyressparrAnmarkning": "Renovering",
            "besiktigadDatum": "20230901",
        },
        "typ": {"objektsOTyp": "LGH", "objektsTyp": "BOST", "beskrivning": "Lägenhet"},
        "kunder": {"id1": "K1"},
        "relationer": {"fastighetNr": "F-7", "ingarI": "B-2"},
    }


@pytest.fixture
def work_order():
    return {
        "id": 5001,
        "externtId": "EXT-1",
        "externtNr": "AO-77",
        "objekt": {"id": "OBJ-100"},
        "kund": {"id": 12},
        "arbetsorderTyp": {"arbetsordertypKod": "F", "arbetsordertypBesk": "Felanmälan"},
        "status": {"statusKod": "REG"},
        "prio": {"prioKod": "1", "prioBesk": "Akut"},
        "information": {"beskrivning": "Droppande kran"},
        "registrerad": {"datumRegistrerad": "20240115", "av": "anna"},
        "bestalld": {"datumBestalld": "2024-01-16"},
        "modifierad": {"datumModifierad": "2024-01-17T09:00:00"},
        "utforare": {"id": "U1", "namn": "Rörfirman AB"},
        "annanAnmalare": {"namn": "Anna", "epostAdress": "anna@example.se", "telefon": "070-1"},
        "bunt": {"id": 9},
        "ekonomi": None,
    }


def test_get_path_tolerates_missing_and_non_dict_levels():
    record = {"a": {"b": "x"}, "c": "texto"}
    missing = get_path({}, ("x",))

    assert get_path(record, ("a", "b")) == "x"
    assert get_path(record, ("a", "z")) is missing
    assert get_path(record, ("c", "d")) is missing


def test_property_flattens_nested_paths(property_node, fixed_clock):
    row = transform_property(property_node, clock=fixed_clock)

    assert row["id"] == "OBJ-100"
    assert row["adress"] == "Storgatan 1"
    assert row["vaning_beskrivning"] == "Plan 2"
    assert row["hyressparr_anmarkning"] == "Renovering"
    assert row["besiktigad_datum"] == "2023-09-01"
    assert row["typ_beskrivning"] == "Lägenhet"
    assert row["fastighet_nr"] == "F-7"
    assert row["ingar_i"] == "B-2"
    # Rutas ausentes -> None
    assert row["lghnummer"] is None
    assert row["kund_id2"] is None
    assert row["foretag_nr"] is None


def test_property_with_only_id_never_raises(fixed_clock):
    row = transform_property({"id": "OBJ-1"}, clock=fixed_clock)

    assert row["id"] == "OBJ-1"
    assert row["vaning_id"] is None
    assert row["besiktigad_datum"] is None
    # hiss es el único campo con default distinto de None
    assert row["hiss"] is False


def test_property_bookkeeping_fields(property_node, fixed_clock):
    row = transform_property(property_node, clock=fixed_clock)

    assert row["status"] == "active"
    assert row["last_synced"] == "2024-01-15 08:30:00"
    assert json.loads(row["raw_data"]) == property_node


def test_work_order_dates_are_normalized(work_order, fixed_clock):
    row = transform_work_order(work_order, clock=fixed_clock)

    assert row["datum_registrerad"] == "2024-01-15"
    assert row["datum_bestalld"] == "2024-01-16"
    assert row["datum_accepterad"] is None
    assert row["datum_utford"] is None
    assert row["datum_modifierad"] == "2024-01-17T09:00:00"


def test_work_order_complex_objects_are_json_text(work_order, fixed_clock):
    row = transform_work_order(work_order, clock=fixed_clock)

    assert json.loads(row["bunt"]) == {"id": 9}
    assert json.loads(row["utforare"]) == {"id": "U1", "namn": "Rörfirman AB"}
    assert json.loads(row["registrerad"]) == {"datumRegistrerad": "20240115", "av": "anna"}
    assert row["ekonomi"] is None
    assert row["utrymme"] is None
    assert row["planering"] is None
    # Se preservan caracteres suecos sin escapar
    assert "Rörfirman" in row["utforare"]


def test_work_order_flat_fields(work_order, fixed_clock):
    row = transform_work_order(work_order, clock=fixed_clock)

    assert row["id"] == 5001
    assert row["externt_nr"] == "AO-77"
    assert row["objekt_id"] == "OBJ-100"
    assert row["kund_id"] == 12
    assert row["status_kod"] == "REG"
    assert row["prio_besk"] == "Akut"
    assert row["utforare_namn"] == "Rörfirman AB"
    assert row["annan_anmalare_epost"] == "anna@example.se"
    assert row["kommentar"] is None


def test_work_order_tolerates_null_intermediate_objects(fixed_clock):
    row = transform_work_order(
        {"id": 1, "registrerad": None, "utforare": None, "annanAnmalare": "inte ett objekt"},
        clock=fixed_clock,
    )

    assert row["datum_registrerad"] is None
    assert row["utforare_id"] is None
    assert row["utforare"] is None
    assert row["annan_anmalare_namn"] is None


def test_transform_is_deterministic_for_fixed_clock(work_order, fixed_clock):
    assert transform_work_order(work_order, clock=fixed_clock) == transform_work_order(work_order, clock=fixed_clock)


def test_transform_for_dispatches_by_entity(property_node, work_order, fixed_clock):
    assert "adress" in transform_for(EntityType.FASTIGHETER, property_node, clock=fixed_clock)
    assert "externt_nr" in transform_for(EntityType.ARBETSORDRAR, work_order, clock=fixed_clock)
