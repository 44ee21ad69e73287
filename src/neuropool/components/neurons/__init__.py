"""Neuron components: population storage, activations and predictors."""

from neuropool.components.neurons.activation import ActivationTable
from neuropool.components.neurons.population import NeuronPlacement, NeuronPopulation, NeuronSpec
from neuropool.components.neurons.predictors import PredictorTracker

__all__ = [
    "ActivationTable",
    "NeuronPlacement",
    "NeuronPopulation",
    "NeuronSpec",
    "PredictorTracker",
]
