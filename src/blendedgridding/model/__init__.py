"""
The MODEL layer contains result data structures and their HDF5 persistence.
It has NO knowledge of plotting.
"""
