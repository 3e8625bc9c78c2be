from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from spineml_codegen.component import parse_xml
from spineml_codegen.config import DEFAULT_OPTIONS
from spineml_codegen.errors import ConfigurationError, ModelReferenceError, UnsupportedFeatureError
from spineml_codegen.models import clear_model_cache
from spineml_codegen.network import (
    find_connector,
    get_neuron_pop_size,
    get_safe_name,
    load_network,
    read_delay_steps,
    read_model_properties,
)

DATA = Path(__file__).parent / "data"

NETWORK_NS = (
    'xmlns="http://www.shef.ac.uk/SpineMLNetworkLayer" '
    'xmlns:LL="http://www.shef.ac.uk/SpineMLLowLevelNetworkLayer"'
)


@pytest.fixture(autouse=True)
def _fresh_model_cache():
    clear_model_cache()
    yield
    clear_model_cache()


def _synapse(connector: str, destination: str = "Target") -> str:
    return (
        f'<LL:Projection dst_population="{destination}"><LL:Synapse>{connector}'
        f'<LL:WeightUpdate url="{DATA / "FixedWeight.xml"}">'
        '<Property name="w"><FixedValue value="1"/></Property></LL:WeightUpdate>'
        f'<LL:PostSynapse url="{DATA / "ExpDecay.xml"}"/>'
        "</LL:Synapse></LL:Projection>"
    )


def _write_network(tmp_path: Path, *populations: str) -> Path:
    path = tmp_path / "probe.xml"
    path.write_text(f"<LL:SpineML {NETWORK_NS}>{''.join(populations)}</LL:SpineML>", encoding="utf8")
    return path


def _population(name: str, size: int = 4, body: str = "") -> str:
    return f'<LL:Population><LL:Neuron name="{name}" size="{size}" url="SpikeSource"/>{body}</LL:Population>'


FIXED_DELAY = '<OneToOneConnection><Delay><FixedValue value="0.5"/></Delay></OneToOneConnection>'


def test_load_network_translates_populations_and_projections() -> None:
    network = load_network(DATA / "network.xml")

    assert network.name == "network"
    assert network.dt == pytest.approx(0.1)
    assert list(network.populations) == ["Input", "Excitatory"]

    source = network.populations["Input"]
    assert source.is_spike_source
    assert source.size == 10

    excitatory = network.populations["Excitatory"]
    assert excitatory.model is not None
    assert excitatory.model.var_names == ("V", "t_spike", "_regimeID")
    np.testing.assert_allclose(excitatory.param_values, [1.0, -50.0, 0.0, 0.0, 20.0, 0.0])
    np.testing.assert_allclose(excitatory.var_values, [0.0, -1000.0, 0.0])

    first, second = network.projections
    assert (first.name, first.source, first.target) == ("Input_Excitatory", "Input", "Excitatory")
    assert first.connector == "OneToOneConnection"
    assert first.delay_steps == 10
    assert first.global_g
    np.testing.assert_allclose(first.weight_update_param_values, [0.5])
    assert first.weight_update_var_values.shape == (0,)
    np.testing.assert_allclose(first.postsynaptic_param_values, [5.0])
    np.testing.assert_allclose(first.postsynaptic_var_values, [0.0])

    assert second.name == "Excitatory_Excitatory"
    assert second.connector == "FixedProbabilityConnection"
    assert second.delay_steps == 15
    assert not second.global_g
    assert second.weight_update.get_vars() == [("w", "scalar")]
    np.testing.assert_allclose(second.weight_update_var_values, [0.0])


def test_load_network_translates_each_model_once() -> None:
    network = load_network(DATA / "network.xml")
    first, second = network.projections

    assert first.postsynaptic is second.postsynaptic
    assert first.weight_update is not second.weight_update
    assert [model.name for model in network.models()] == ["LeakyIAF", "FixedWeight", "ExpDecay", "FixedWeight"]


def test_load_network_frame_summarises_network() -> None:
    frame = load_network(DATA / "network.xml").to_frame()

    assert frame["type"].tolist() == ["population", "population", "projection", "projection"]
    assert frame.loc[0, "model"] == "SpikeSource"
    assert frame.loc[2, "postsynaptic_model"] == "ExpDecay"
    assert frame.attrs["network"] == "network"


def test_load_network_uses_configured_timestep() -> None:
    network = load_network(DATA / "network.xml", options=DEFAULT_OPTIONS.with_overrides(dt=0.5))
    assert [projection.delay_steps for projection in network.projections] == [2, 3]


def test_load_network_rejects_unknown_population(tmp_path) -> None:
    path = _write_network(tmp_path, _population("Source", body=_synapse(FIXED_DELAY, "Nowhere")))
    with pytest.raises(ModelReferenceError, match="Cannot find neuron population:Nowhere"):
        load_network(path)


def test_load_network_rejects_distributed_delay(tmp_path) -> None:
    connector = (
        "<AllToAllConnection><Delay>"
        '<NormalDistribution mean="1" variance="0.1"/>'
        "</Delay></AllToAllConnection>"
    )
    path = _write_network(tmp_path, _population("Source", body=_synapse(connector)), _population("Target"))
    with pytest.raises(UnsupportedFeatureError, match="single fixed delay"):
        load_network(path)


def test_load_network_requires_supported_connector(tmp_path) -> None:
    connector = '<KernelConnection><Delay><FixedValue value="1"/></Delay></KernelConnection>'
    path = _write_network(tmp_path, _population("Source", body=_synapse(connector)), _population("Target"))
    with pytest.raises(UnsupportedFeatureError, match="no supported connection type"):
        load_network(path)


def test_load_network_rejects_duplicate_population(tmp_path) -> None:
    path = _write_network(tmp_path, _population("A"), _population("A"))
    with pytest.raises(ConfigurationError, match="population 'A' is declared more than once"):
        load_network(path)


def test_load_network_validates_population_size(tmp_path) -> None:
    path = _write_network(tmp_path, _population("A", size=-1))
    with pytest.raises(ConfigurationError, match="invalid 'Neuron' node"):
        load_network(path)


def test_load_network_requires_spineml_root(tmp_path) -> None:
    path = tmp_path / "other.xml"
    path.write_text("<Experiment/>", encoding="utf8")
    with pytest.raises(ConfigurationError, match="not a low-level SpineML network"):
        load_network(path)


def test_load_network_reports_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="Unable to load XML file"):
        load_network(tmp_path / "missing.xml")


def test_get_safe_name_replaces_punctuation() -> None:
    assert get_safe_name("Input to Excitatory-1") == "Input_to_Excitatory_1"
    assert get_safe_name("already_safe") == "already_safe"


def test_get_neuron_pop_size_looks_up_sizes() -> None:
    assert get_neuron_pop_size("A", {"A": 3}) == 3
    with pytest.raises(ModelReferenceError):
        get_neuron_pop_size("B", {"A": 3})


def test_read_delay_steps_rounds_halves_up() -> None:
    node = parse_xml('<OneToOneConnection><Delay><FixedValue value="1.25"/></Delay></OneToOneConnection>')
    assert read_delay_steps(node, 0.5) == 3


def test_read_delay_steps_rejects_bad_delays() -> None:
    with pytest.raises(ConfigurationError, match="has no 'Delay' node"):
        read_delay_steps(parse_xml("<OneToOneConnection/>"), 0.1)
    negative = parse_xml('<OneToOneConnection><Delay><FixedValue value="-1"/></Delay></OneToOneConnection>')
    with pytest.raises(ConfigurationError, match="negative delay"):
        read_delay_steps(negative, 0.1)
    infinite = parse_xml('<OneToOneConnection><Delay><FixedValue value="inf"/></Delay></OneToOneConnection>')
    with pytest.raises(ConfigurationError, match="not finite"):
        read_delay_steps(infinite, 0.1)


def test_find_connector_prefers_declared_kind() -> None:
    synapse = parse_xml("<Synapse><ConnectionList/><WeightUpdate/></Synapse>")
    kind, node = find_connector(synapse)
    assert kind == "ConnectionList"
    assert node.tag == "ConnectionList"


def test_read_model_properties_splits_fixed_and_variable(tmp_path) -> None:
    node = parse_xml(
        '<WeightUpdate url="FixedWeight.xml">'
        '<Property name="w"><UniformDistribution minimum="0" maximum="1"/></Property>'
        '<Property name="delay"><FixedValue value="2"/></Property>'
        "</WeightUpdate>"
    )
    params, fixed = read_model_properties(tmp_path, node)

    assert params.url == str((tmp_path / "FixedWeight.xml").resolve())
    assert params.variable_params == frozenset({"w"})
    assert fixed == {"delay": 2.0}


@pytest.mark.parametrize("dt", [0.0, -0.1])
def test_read_delay_steps_rejects_invalid_timestep(dt) -> None:
    node = parse_xml('<OneToOneConnection><Delay><FixedValue value="1"/></Delay></OneToOneConnection>')
    with pytest.raises(ConfigurationError, match="timestep dt must be a positive finite number"):
        read_delay_steps(node, dt)
