# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Visit
# ============
#
# Walk an in-memory object graph rooted at a schema, calling hooks at
# each schema and reference node. Hooks may return a different node
# (replace) or None (delete), and the change is written back into the
# exact slot the node was reached through.
#
# Main utilities
# - Visitor: base class; override visit_schema and visit_reference.
# - visit: coroutine, visit a graph using plain hook functions.
# - walk: synchronous version of visit.
# - PathCollector: visitor that records the path of each schema.
#
# Minor utilities
# - isschema, isreference, ismap, islist, isiterable, istext, isleaf:
#   identify value kinds.
# - typify: short type name of a value, for diagnostics.
# - keypath, indexpath: extend a path with a key or an index.
# - setprop: set or delete a map key or list element.
# - replace_or_delete: replace a list element, or delete it if None.
# - IdentitySet: set of already visited objects, by identity.
#
# Nodes are visited at most once per call, so cycles and shared
# subtrees are safe. Collections are snapshotted before they are
# iterated, so hooks may mutate them.


from typing import *
from collections.abc import Iterable, Mapping, MutableSequence
import asyncio
import inspect
import logging

import structlog

from .schema import ReferenceNode, SchemaNode


# Structured events, routed through the stdlib logger so nothing is
# emitted unless the application enables this logger.
_stdlog = logging.getLogger(__name__)
logger = structlog.wrap_logger(_stdlog)


def _debug(event: str, **kw: Any) -> None:
    "Emit a debug event, only if the stdlib logger is enabled for DEBUG."
    if _stdlog.isEnabledFor(logging.DEBUG):
        logger.debug(event, **kw)


# The standard undefined value for this language.
UNDEF = None

# Marker for "no value known yet", where None is a real value.
_NOTSET = object()

# Marker for a list element already deleted through its target.
_DELETED = object()

# Path syntax.
S_ROOT = '#'
S_FS = '/'
S_OB = '['
S_CB = ']'

# Schema slot path segments.
S_definitions = 'definitions'
S_additionalItems = 'additionalItems'
S_additionalProperties = 'additionalProperties'
S_items = 'items'
S_allOf = 'allOf'
S_anyOf = 'anyOf'
S_oneOf = 'oneOf'
S_not = 'not'
S_properties = 'properties'
S_patternProperties = 'patternProperties'

# General strings.
S_schema = 'schema'
S_reference = 'reference'
S_map = 'map'
S_list = 'list'
S_iterable = 'iterable'
S_string = 'string'
S_number = 'number'
S_boolean = 'boolean'
S_function = 'function'
S_object = 'object'
S_null = 'null'


# Slots of a schema node, in visiting order.
# Each entry: (attribute, path segment, slot kind, use key as type hint).
SCHEMA_SLOTS = (
    ('definitions', S_definitions, S_map, True),
    ('additional_items_schema', S_additionalItems, S_schema, False),
    ('additional_properties_schema', S_additionalProperties, S_schema, False),
    ('item', S_items, S_schema, False),
    ('items', S_items, S_list, False),
    ('all_of', S_allOf, S_list, False),
    ('any_of', S_anyOf, S_list, False),
    ('one_of', S_oneOf, S_list, False),
    ('not_', S_not, S_schema, False),
    ('properties', S_properties, S_map, True),
    ('pattern_properties', S_patternProperties, S_map, False),
)


class VisitError(Exception):
    "Base class for visitor errors."


class UnsupportedReplaceError(VisitError):
    "The slot a node was reached through cannot be rebound."


def isschema(val: Any = UNDEF) -> bool:
    "Value is a schema node."
    return isinstance(val, SchemaNode)


def isreference(val: Any = UNDEF) -> bool:
    "Value has reference semantics (independently of being a schema)."
    return isinstance(val, ReferenceNode)


def ismap(val: Any = UNDEF) -> bool:
    "Value is key-indexed."
    return isinstance(val, Mapping)


def islist(val: Any = UNDEF) -> bool:
    "Value is index-indexed and supports in-place insert and delete."
    return isinstance(val, MutableSequence)


def istext(val: Any = UNDEF) -> bool:
    "Value is a string (or bytes), and is never decomposed."
    return isinstance(val, (str, bytes, bytearray))


def isiterable(val: Any = UNDEF) -> bool:
    "Value can only be iterated - no keys or indexes."
    return isinstance(val, Iterable) \
        and not istext(val) and not ismap(val) and not islist(val)


def isleaf(val: Any = UNDEF) -> bool:
    "Value has no children: text, numbers, booleans, functions and classes."
    return val is UNDEF or istext(val) \
        or isinstance(val, (bool, int, float, complex)) or callable(val)


def typify(val: Any = UNDEF) -> str:
    "Short type name of a value, for log and error messages."
    if val is UNDEF:
        return S_null
    if isschema(val):
        return S_schema
    if isreference(val):
        return S_reference
    if istext(val):
        return S_string
    if isinstance(val, bool):
        return S_boolean
    if isinstance(val, (int, float, complex)):
        return S_number
    if callable(val):
        return S_function
    if ismap(val):
        return S_map
    if islist(val):
        return S_list
    if isiterable(val):
        return S_iterable
    return S_object


def keypath(path: str, key: Any) -> str:
    "Extend a path with a key or field name: path/key."
    return path + S_FS + str(key)


def indexpath(path: str, index: int) -> str:
    "Extend a path with a list index: path[index]."
    return path + S_OB + str(index) + S_CB


def replace_or_delete(seq: MutableSequence, index: int, val: Any):
    """
    Remove the element at index, then, if val is not None, insert val at
    the same index. The list keeps its length on replace, and shrinks by
    one on delete, with later elements shifted down.
    """
    del seq[index]
    if val is not UNDEF:
        seq.insert(index, val)
    return seq


def setprop(parent: Any, key: Any, val: Any):
    """
    Set a map key or list element in place.
    - If `val` is None, delete the key (or list element).
    - Missing map keys are ignored on delete.
    """
    if ismap(parent):
        if val is UNDEF:
            parent.pop(key, UNDEF)
        else:
            parent[key] = val

    elif islist(parent):
        replace_or_delete(parent, key, val)

    return parent


class IdentitySet:
    """
    Objects already visited, by identity (not equality).
    Members are held so their ids are not reused during a traversal.
    """

    def __init__(self) -> None:
        self._seen: Dict[int, Any] = {}

    def add(self, val: Any) -> None:
        self._seen[id(val)] = val

    def __contains__(self, val: Any) -> bool:
        return id(val) in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self):
        return iter(self._seen.values())


# Replacers: each rebinds exactly one slot.
# Calling a replacer with None deletes the slot.

class RootTarget:
    "The root has no parent slot."

    def __call__(self, val: Any) -> None:
        raise UnsupportedReplaceError('Cannot replace the root.')

    def __repr__(self) -> str:
        return '<RootTarget>'


class UnindexedTarget:
    "An item from a plain iterable has no storage to rebind."

    def __call__(self, val: Any) -> None:
        raise UnsupportedReplaceError('Cannot replace enumerable item.')

    def __repr__(self) -> str:
        return '<UnindexedTarget>'


class FieldTarget:
    "A named member of an object. None sets the member to None."

    def __init__(self, obj: Any, name: str) -> None:
        self.obj = obj
        self.name = name

    def __call__(self, val: Any) -> None:
        setattr(self.obj, self.name, val)

    def __repr__(self) -> str:
        return f'<FieldTarget {typify(self.obj)}.{self.name}>'


class KeyTarget:
    "A map entry. None removes the key."

    def __init__(self, mapping: Any, key: Any) -> None:
        self.mapping = mapping
        self.key = key

    def __call__(self, val: Any) -> None:
        setprop(self.mapping, self.key, val)

    def __repr__(self) -> str:
        return f'<KeyTarget {self.key!r}>'


class IndexTarget:
    """
    A list element. None removes the element.

    If `current` is given, it is the element expected in the slot; if
    earlier deletes have shifted it, it is found again by identity.
    If it is no longer in the list (or was deleted), VisitError is raised.
    """

    def __init__(self, seq: MutableSequence, index: int, current: Any = _NOTSET) -> None:
        self.seq = seq
        self.index = index
        self.current = current

    def __call__(self, val: Any) -> None:
        index = self.locate()
        replace_or_delete(self.seq, index, val)
        self.index = index
        self.current = _DELETED if val is UNDEF else val

    def locate(self) -> int:
        index = self.index
        if self.current is _NOTSET:
            return index
        if index < len(self.seq) and self.seq[index] is self.current:
            return index
        for i, elem in enumerate(self.seq):
            if elem is self.current:
                return i
        raise VisitError('Cannot replace list item: it is no longer in the list.')

    def __repr__(self) -> str:
        return f'<IndexTarget [{self.index}]>'


_member_cache: Dict[type, Tuple[str, ...]] = {}


def _class_members(cls: type) -> Tuple[str, ...]:
    "Public slots and settable properties of a class, cached per class."
    names = _member_cache.get(cls)
    if names is None:
        found = []
        for klass in reversed(cls.__mro__):
            slots = klass.__dict__.get('__slots__', ())
            if isinstance(slots, str):
                slots = (slots,)
            for name in slots:
                if not name.startswith('_') and name not in found:
                    found.append(name)
            for name, attr in klass.__dict__.items():
                if isinstance(attr, property) and attr.fset is not None \
                   and not name.startswith('_') and name not in found:
                    found.append(name)
        names = tuple(found)
        _member_cache[cls] = names
    return names


def members(obj: Any) -> List[str]:
    """
    Public member names of a plain object: instance attributes first,
    then slots and settable properties.
    """
    names = [name for name in getattr(obj, '__dict__', {})
             if not name.startswith('_')]
    for name in _class_members(type(obj)):
        if name not in names:
            names.append(name)
    return names


class Visitor:
    """
    Visit an object graph, calling `visit_schema` for each schema node
    and `visit_reference` for each reference node.

    Hooks return the node they were given (no change), a different node
    (replace), or None (delete). Hooks may be coroutines.

    Nodes are visited once per call to `visit`. The root node cannot be
    replaced, only changed in place.
    """

    root_path = S_ROOT

    async def visit(self, obj: Any) -> None:
        "Visit every node reachable from obj."
        visited = IdentitySet()
        await self._visit(obj, self.root_path, UNDEF, visited, RootTarget())
        _debug('visit_complete', visited=len(visited))

    def run(self, obj: Any) -> None:
        "Synchronous visit. Not for use inside a running event loop."
        asyncio.run(self.visit(obj))

    async def visit_schema(self, schema: Any, path: str, type_hint: Optional[str]) -> Any:
        "Called when a schema node is visited."
        return schema

    async def visit_reference(self, reference: Any, path: str, type_hint: Optional[str]) -> Any:
        "Called when a reference node is visited."
        return reference

    async def _visit(
            self,
            obj: Any,
            path: str,
            type_hint: Optional[str],
            visited: IdentitySet,
            replace: Callable[[Any], None]
    ) -> None:
        if obj is UNDEF:
            return

        # Leaves have no hooks and no children.
        if isleaf(obj) and not isschema(obj) and not isreference(obj):
            return

        if obj in visited:
            _debug('node_skipped', path=path, type=typify(obj))
            return
        visited.add(obj)

        if isschema(obj):
            schema = await self._hook(self.visit_schema, obj, path, type_hint, replace)

            # A deleted schema is not offered to the reference hook.
            if isreference(schema):
                schema = await self._hook(
                    self.visit_reference, schema, path, type_hint, replace)

            if schema is UNDEF:
                return

            if isschema(schema):
                await self._visit_slots(schema, path, visited)
                return
            obj = schema

        elif isreference(obj):
            obj = await self._hook(self.visit_reference, obj, path, type_hint, replace)
            if obj is UNDEF:
                return

        if not isleaf(obj):
            await self._walk(obj, path, visited)

    async def _hook(self, hook, node, path, type_hint, replace):
        "Call a hook and write a changed result back through replace."
        out = hook(node, path, type_hint)
        if inspect.isawaitable(out):
            out = await out

        if out is not node:
            replace(out)
            if out is UNDEF:
                _debug('node_deleted', path=path, type=typify(node))
            else:
                _debug('node_replaced', path=path,
                             old=typify(node), new=typify(out))
        return out

    async def _visit_slots(self, schema: Any, path: str, visited: IdentitySet) -> None:
        "Visit the schema slots, in fixed order."
        for (attr, segment, kind, keyhint) in SCHEMA_SLOTS:
            slot = getattr(schema, attr, UNDEF)
            if slot is UNDEF:
                continue

            if S_schema == kind:
                await self._visit(slot, keypath(path, segment), UNDEF, visited,
                                  FieldTarget(schema, attr))

            elif S_map == kind:
                base = keypath(path, segment)
                for (key, child) in list(slot.items()):
                    await self._visit(child, keypath(base, key),
                                      key if keyhint else UNDEF, visited,
                                      KeyTarget(slot, key))

            else:
                base = keypath(path, segment)
                for (index, child) in enumerate(list(slot)):
                    await self._visit(child, indexpath(base, index), UNDEF, visited,
                                      IndexTarget(slot, index, child))

    async def _walk(self, obj: Any, path: str, visited: IdentitySet) -> None:
        "Visit the children of a value that is not a schema, by its shape."
        if ismap(obj):
            for (key, child) in list(obj.items()):
                await self._visit(child, keypath(path, key), str(key), visited,
                                  KeyTarget(obj, key))

        elif islist(obj):
            for (index, child) in enumerate(list(obj)):
                await self._visit(child, indexpath(path, index), UNDEF, visited,
                                  IndexTarget(obj, index, child))

        elif isiterable(obj):
            for (index, child) in enumerate(list(obj)):
                await self._visit(child, indexpath(path, index), UNDEF, visited,
                                  UnindexedTarget())

        else:
            for name in members(obj):
                child = getattr(obj, name, UNDEF)
                if child is not UNDEF:
                    await self._visit(child, keypath(path, name), name, visited,
                                      FieldTarget(obj, name))


class FuncVisitor(Visitor):
    "Visitor with hooks given as plain functions (or coroutine functions)."

    def __init__(self, on_schema: Any = UNDEF, on_reference: Any = UNDEF) -> None:
        self.on_schema = on_schema
        self.on_reference = on_reference

    def visit_schema(self, schema, path, type_hint):
        if self.on_schema is UNDEF:
            return schema
        return self.on_schema(schema, path, type_hint)

    def visit_reference(self, reference, path, type_hint):
        if self.on_reference is UNDEF:
            return reference
        return self.on_reference(reference, path, type_hint)


class PathCollector(Visitor):
    """
    Record the path and type hint of each schema and reference visited,
    in visiting order. Nothing is changed.
    """

    def __init__(self) -> None:
        self.schemas: List[Tuple[str, Optional[str]]] = []
        self.references: List[Tuple[str, Optional[str]]] = []

    @property
    def paths(self) -> List[str]:
        return [path for (path, _hint) in self.schemas]

    async def visit_schema(self, schema, path, type_hint):
        self.schemas.append((path, type_hint))
        return schema

    async def visit_reference(self, reference, path, type_hint):
        self.references.append((path, type_hint))
        return reference


async def visit(obj: Any, on_schema: Any = UNDEF, on_reference: Any = UNDEF) -> Any:
    """
    Visit obj, calling on_schema(schema, path, type_hint) and
    on_reference(reference, path, type_hint) where given.
    Returns obj, which is changed in place.
    """
    await FuncVisitor(on_schema, on_reference).visit(obj)
    return obj


def walk(obj: Any, on_schema: Any = UNDEF, on_reference: Any = UNDEF) -> Any:
    "Synchronous version of visit."
    return asyncio.run(visit(obj, on_schema, on_reference))


__all__ = [
    'FieldTarget',
    'FuncVisitor',
    'IdentitySet',
    'IndexTarget',
    'KeyTarget',
    'PathCollector',
    'RootTarget',
    'SCHEMA_SLOTS',
    'S_ROOT',
    'UnindexedTarget',
    'UnsupportedReplaceError',
    'VisitError',
    'Visitor',
    'indexpath',
    'isiterable',
    'isleaf',
    'islist',
    'ismap',
    'isreference',
    'isschema',
    'istext',
    'keypath',
    'members',
    'replace_or_delete',
    'setprop',
    'typify',
    'visit',
    'walk',
]
