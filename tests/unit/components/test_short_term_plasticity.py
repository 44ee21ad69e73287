"""
Tests for short-term plasticity of dynamic synapses.

Author: Neuropool Project
Date: October 2026
"""

import math

import pytest
import torch

from neuropool.components.synapses.dynamics import (
    STATIC_SYNAPSE,
    STPParameters,
    ShortTermPlasticity,
    sample_stp_parameters,
)
from neuropool.config import DynamicsConfig
from neuropool.utils.rng import RandomSource

DTYPE = torch.float64


def make_stp(*parameters):
    return ShortTermPlasticity(list(parameters), torch.device("cpu"), DTYPE)


def step(stp, fired, leak):
    n = stp.size
    return stp(
        0,
        n,
        torch.tensor([fired] * n, dtype=torch.bool),
        torch.tensor([leak] * n, dtype=torch.long),
    )


def test_static_synapse_has_unit_efficacy():
    stp = make_stp(STATIC_SYNAPSE)
    assert not stp.any_applied
    assert step(stp, True, 1).item() == 1.0


def test_resting_efficacy_before_first_spike():
    stp = make_stp(STPParameters(True, 0.8, 1.0, 3.0))
    for _ in range(3):
        assert step(stp, False, 5).item() == pytest.approx(0.8)


def test_facilitation_and_depression_update():
    resting, tau_f, tau_d = 0.5, 1.0, 3.0
    stp = make_stp(STPParameters(True, resting, tau_f, tau_d))

    efficacy = step(stp, True, 1).item()

    tmp = resting * math.exp(-1.0 / tau_f)
    facilitation = tmp + resting * (1.0 - tmp)
    tmp = math.exp(-1.0 / tau_d)
    depression = 1.0 * (1.0 - facilitation) * tmp + 1.0 - tmp
    assert efficacy == pytest.approx(facilitation * depression)
    assert stp.facilitation.item() == pytest.approx(facilitation)
    assert stp.depression.item() == pytest.approx(depression)


def test_long_silence_recovers():
    """After a long silence depression recovers and facilitation rests."""
    stp = make_stp(STPParameters(True, 0.5, 1.0, 3.0))
    for _ in range(5):
        step(stp, True, 1)
    efficacy = step(stp, True, 1000).item()
    assert efficacy == pytest.approx(0.5 * 1.0, rel=1e-6)


def test_mixed_bank_slices():
    stp = make_stp(STATIC_SYNAPSE, STPParameters(True, 0.5, 1.0, 3.0))
    efficacy = stp(
        1,
        2,
        torch.tensor([True], dtype=torch.bool),
        torch.tensor([1], dtype=torch.long),
    )
    assert efficacy.shape == (1,)
    assert efficacy.item() < 1.0
    # The static synapse was not touched
    assert stp.facilitation[0].item() == 1.0


def test_reset_restores_resting_state():
    stp = make_stp(STPParameters(True, 0.7, 1.0, 3.0))
    step(stp, True, 1)
    stp.reset()
    assert stp.facilitation.item() == pytest.approx(0.7)
    assert stp.depression.item() == 1.0


def test_sampled_parameters_are_jittered_within_bounds():
    config = DynamicsConfig(enabled=True, resting_efficacy=0.6, tau_facilitation=2.0, tau_depression=4.0)
    rng = RandomSource(3)
    samples = [sample_stp_parameters(config, rng) for _ in range(200)]
    assert all(p.applied for p in samples)
    for name, nominal in (
        ("resting_efficacy", 0.6),
        ("tau_facilitation", 2.0),
        ("tau_depression", 4.0),
    ):
        values = [getattr(p, name) for p in samples]
        assert min(values) >= 0.75 * nominal
        assert max(values) <= 1.25 * nominal
        assert len(set(values)) > 1
