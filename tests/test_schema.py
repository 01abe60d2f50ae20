import json
from dataclasses import replace

import pytest

from lumiplan.planner import add_manual_link, bulk_update_lights, create_plan
from lumiplan.schema.models import (
    DOCUMENT_VERSION,
    ProjectModel,
    ProjectValidationError,
    Road,
    dump_project,
    load_project,
    load_project_file,
    save_project_file,
)


@pytest.fixture
def planned(at):
    roads = [
        Road(id="A", name="Avenue", path=(at(0), at(100))),
        Road(id="B", name="Cross", path=(at(50, -60), at(50, 60))),
    ]
    state = create_plan(roads, boundary=(at(-10, -70), at(110, -70), at(110, 70)))
    ids = [light.id for light in state.lights]
    state = bulk_update_lights(state, ids, phase=1)
    return add_manual_link(state, ids[0], ids[1])


def test_file_round_trip(tmp_path, planned):
    path = save_project_file(planned, tmp_path / "nested" / "project.json")
    assert path.exists()
    assert load_project_file(path) == planned


def test_document_shape(planned):
    doc = json.loads(json.dumps(dump_project(planned)))
    assert doc["version"] == DOCUMENT_VERSION
    assert set(doc["panels"][0]["routing"]) == {"1", "2", "3"}
    assert doc["lights"][0]["pole_type"] == "concrete_7m"
    assert set(doc) == set(ProjectModel.model_fields)


def test_dump_rejects_states_that_cannot_be_documents(planned):
    broken = replace(planned, lights=(replace(planned.lights[0], power_w=0),) + planned.lights[1:])
    with pytest.raises(ProjectValidationError):
        dump_project(broken)


def test_minimal_document_defaults(at):
    state = load_project({"roads": [{"id": "r", "path": [{"lat": 1, "lng": 2}, {"lat": 1.001, "lng": 2}]}]})
    assert state.spacing_m == 30.0
    assert state.calculation.cable_type == "AL_PRE_2x25"
    assert state.lights == ()


def test_unsupported_version():
    with pytest.raises(ProjectValidationError):
        load_project({"version": 2})


@pytest.mark.parametrize(
    "patch",
    [
        {"lights": [{"id": "x", "position": {"lat": 0, "lng": 0}, "power_w": 0}]},
        {"lights": [{"id": "x", "position": {"lat": 0, "lng": 0}, "power_w": 42, "phase": 4}]},
        {"roads": [{"id": "r", "path": [{"lat": 0, "lng": 0}]}]},
        {"panels": [{"id": 1, "position": {"lat": 0, "lng": 0}, "routing": {"5": {}}}]},
        {"unexpected": True},
    ],
)
def test_invalid_documents(patch):
    with pytest.raises(ProjectValidationError) as excinfo:
        load_project({"version": 1, **patch})
    assert excinfo.value.errors
