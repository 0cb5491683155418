"""
Household water usage optimizer: synthetic data, usage prediction,
simulated training and conservation advice.
"""
