"""Depth of a very deep binary tree, walked with plain generators."""

from heaprec import drive_to_completion, recurse_into


class Tree:
    def __init__(self, left=None, right=None):
        self.left = left
        self.right = right


def depth(tree):
    if tree is None:
        return 0
    left = yield recurse_into(depth(tree.left))
    right = yield recurse_into(depth(tree.right))
    return max(left, right) + 1


def lopsided(height: int) -> Tree:
    tree = None
    for i in range(height):
        tree = Tree(tree, Tree() if i % 2 else None)
    return tree


if __name__ == "__main__":
    print(drive_to_completion(depth(lopsided(500_000))))
