"""Reservoir building blocks: neurons and synapses."""
