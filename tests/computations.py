"""Recursive computations shared across tests."""

from heaprec import recurse_into


def pow_mod(base: int, n: int, mod: int):
    """base ** n % mod by one recursive call per multiplication."""
    if n == 0:
        return 1
    rest = yield recurse_into(pow_mod(base, n - 1, mod))
    return base * rest % mod


def pow_mod_iterative(base: int, n: int, mod: int) -> int:
    result = 1
    for _ in range(n):
        result = base * result % mod
    return result


def leaf(value=None):
    return value
    yield  # noqa: B901
