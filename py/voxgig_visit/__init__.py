# voxgig_visit init

from .voxgig_visit import (
    FieldTarget,
    FuncVisitor,
    IdentitySet,
    IndexTarget,
    KeyTarget,
    PathCollector,
    RootTarget,
    SCHEMA_SLOTS,
    S_ROOT,
    UnindexedTarget,
    UnsupportedReplaceError,
    VisitError,
    Visitor,
    indexpath,
    isiterable,
    isleaf,
    islist,
    ismap,
    isreference,
    isschema,
    istext,
    keypath,
    members,
    replace_or_delete,
    setprop,
    typify,
    visit,
    walk
)

from .schema import (
    JsonReference,
    JsonSchema,
    ReferenceNode,
    SchemaNode
)


__all__ = [
    'FieldTarget',
    'FuncVisitor',
    'IdentitySet',
    'IndexTarget',
    'JsonReference',
    'JsonSchema',
    'KeyTarget',
    'PathCollector',
    'ReferenceNode',
    'RootTarget',
    'SCHEMA_SLOTS',
    'S_ROOT',
    'SchemaNode',
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
