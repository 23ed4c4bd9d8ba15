# nodes.py
#
# Typed view over a GenICam node map. Every feature node is one of three
# kinds (integer, enumeration, command) and is looked up by name through
# NodeMap.find(). Backends subclass these classes to bind them to a real SDK.

from enum import Enum

from camera.errors import NodeTypeError


class NodeKind(Enum):
    INTEGER = "integer"
    ENUMERATION = "enumeration"
    COMMAND = "command"

    def __str__(self):
        return f"{self.value} node"


class Node:
    """A single named feature node."""
    kind: NodeKind

    def __init__(self, name: str):
        self.name = name

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r}>"


class IntegerNode(Node):
    kind = NodeKind.INTEGER

    def value(self) -> int:
        raise NotImplementedError

    def set_value(self, value: int):
        raise NotImplementedError


class EnumerationNode(Node):
    kind = NodeKind.ENUMERATION

    def current_entry(self) -> str:
        raise NotImplementedError

    def set_current_entry(self, entry: str):
        raise NotImplementedError


class CommandNode(Node):
    kind = NodeKind.COMMAND

    def execute(self):
        raise NotImplementedError

    def wait_until_done(self):
        """Block until the device reports the command as finished (no timeout)."""
        raise NotImplementedError


class NodeMap:
    """
    Name-indexed access to a device's feature tree.

    Subclasses implement lookup(), which returns a Node or raises
    NodeNotFoundError. find() adds the kind check so callers always get
    the node type they asked for.
    """

    def lookup(self, name: str) -> Node:
        raise NotImplementedError

    def find(self, name: str, kind: NodeKind) -> Node:
        node = self.lookup(name)
        if node.kind is not kind:
            raise NodeTypeError(name, kind, node.kind)
        return node

    def integer(self, name: str) -> IntegerNode:
        return self.find(name, NodeKind.INTEGER)

    def enumeration(self, name: str) -> EnumerationNode:
        return self.find(name, NodeKind.ENUMERATION)

    def command(self, name: str) -> CommandNode:
        return self.find(name, NodeKind.COMMAND)
