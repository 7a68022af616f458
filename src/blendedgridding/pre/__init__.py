"""
Inputs to gridding: samplings, tensor fields and rasterized scattered samples.
"""
