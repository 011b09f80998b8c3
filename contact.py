# contact.py
"""
Spring-damper contact law shared by the force kernel and the energy
diagnostic.

Every contact, grain on grain or grain on floor, is described by its
overlap, the signed penetration depth `threshold - distance`. A contact
only acts while the overlap is strictly positive: the spring then pushes
the bodies apart with `k * overlap` and stores `0.5 * k * overlap**2`,
and the damper opposes the relative velocity without storing energy.

The functions are compiled with Numba so they can be called from the
jitted kernels as well as from plain Python.
"""
from numba import jit


@jit(nopython=True)
def is_in_contact(overlap):
    """True while the bodies overlap; touching exactly is not contact."""
    return overlap > 0.0


@jit(nopython=True)
def spring_force(k, overlap):
    """Repulsive spring force for a positive overlap, zero otherwise."""
    if overlap > 0.0:
        return k * overlap
    return 0.0


@jit(nopython=True)
def damper_force(c, relative_velocity):
    # Only meaningful while in contact; callers gate it on is_in_contact.
    return -c * relative_velocity


@jit(nopython=True)
def elastic_potential(k, overlap):
    """Energy stored in the spring, 0.5 * k * overlap**2 while in contact."""
    if overlap > 0.0:
        return 0.5 * k * overlap * overlap
    return 0.0
