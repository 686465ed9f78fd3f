# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Minimal schema model for the visitor.
#
# The visitor only knows two privileged node kinds: SchemaNode (a node
# with the fixed set of schema slots) and ReferenceNode (a node that
# may point at another node). Real schema models subclass these.


from typing import *


class ReferenceNode:
    """
    Marker for nodes with reference semantics.
    `ref` is the raw reference string (if any) and `reference` the
    resolved target node (if any). Resolution is not done here.
    """

    ref: Optional[str] = None
    reference: Any = None

    def has_reference(self) -> bool:
        return self.reference is not None or self.ref is not None


class SchemaNode:
    """
    A node exposing the structurally significant schema slots.
    Map slots are dicts, sequence slots are lists, single slots hold
    one optional child.
    """

    def __init__(
        self,
        definitions: Dict[str, Any] = None,
        additional_items_schema: Any = None,
        additional_properties_schema: Any = None,
        item: Any = None,
        items: List[Any] = None,
        all_of: List[Any] = None,
        any_of: List[Any] = None,
        one_of: List[Any] = None,
        not_: Any = None,
        properties: Dict[str, Any] = None,
        pattern_properties: Dict[str, Any] = None,
    ) -> None:
        self.definitions = {} if definitions is None else definitions
        self.additional_items_schema = additional_items_schema
        self.additional_properties_schema = additional_properties_schema
        self.item = item
        self.items = [] if items is None else items
        self.all_of = [] if all_of is None else all_of
        self.any_of = [] if any_of is None else any_of
        self.one_of = [] if one_of is None else one_of
        self.not_ = not_
        self.properties = {} if properties is None else properties
        self.pattern_properties = \
            {} if pattern_properties is None else pattern_properties


class JsonSchema(SchemaNode, ReferenceNode):
    "A schema node that may also be a reference ($ref) to another schema."

    def __init__(
        self,
        title: Optional[str] = None,
        type: Optional[str] = None,
        ref: Optional[str] = None,
        reference: Any = None,
        **slots: Any
    ) -> None:
        super().__init__(**slots)
        self.title = title
        self.type = type
        self.ref = ref
        self.reference = reference

    def __repr__(self) -> str:
        name = self.title or self.ref or ''
        return f'<JsonSchema {name}>' if name else '<JsonSchema>'


class JsonReference(ReferenceNode):
    "A bare reference that is not itself a schema."

    def __init__(self, ref: Optional[str] = None, reference: Any = None) -> None:
        self.ref = ref
        self.reference = reference

    def __repr__(self) -> str:
        return f'<JsonReference {self.ref}>'


__all__ = [
    'JsonReference',
    'JsonSchema',
    'ReferenceNode',
    'SchemaNode',
]
