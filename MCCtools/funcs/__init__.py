"""
MCCtools analysis functions: tensors, resolution reduction and clustering.
"""
