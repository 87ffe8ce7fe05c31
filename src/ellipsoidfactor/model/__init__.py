"""
The MODEL layer contains pure data structures: the ellipsoid, the voxel volume
and the optimisation parameters.
It has NO knowledge of the optimisation loop or of threading.
"""
