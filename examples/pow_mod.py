"""
Modular exponentiation by ten million nested calls.

Run with ``python examples/pow_mod.py [exponent]``. Memory use grows with the
exponent; the interpreter stack does not.
"""

import logging
import sys

from heaprec import Trampoline, recursive


@recursive
def pow_mod(base: int, n: int, mod: int):
    if n == 0:
        return 1
    rest = yield pow_mod(base, n - 1, mod).recurse()
    return base * rest % mod


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    exponent = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000_000

    trampoline = Trampoline()
    result = trampoline.drive(pow_mod(2, exponent, 1_000_000))
    stats = trampoline.last_stats

    print(f"2 ** {exponent} % 1_000_000 = {result}")
    print(f"steps={stats.steps} max_depth={stats.max_depth} ({stats.duration_ns / 1e9:.2f}s)")


if __name__ == "__main__":
    main()
