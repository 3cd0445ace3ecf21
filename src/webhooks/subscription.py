"""Field projection of webhook subscription documents.

The platform only delivers the fields a subscription selects, so the set of
dotted response paths under the ``event`` root is the contract between the
registered query and the code that reads the payload.
"""

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLError,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    parse,
)


def _paths(
    selection_set: SelectionSetNode | None,
    fragments: dict[str, FragmentDefinitionNode],
    prefix: str,
    expanding: frozenset[str],
) -> set[str]:
    paths: set[str] = set()
    if selection_set is None:
        return paths

    for node in selection_set.selections:
        if isinstance(node, FieldNode):
            # aliased fields arrive under the alias
            path = prefix + (node.alias or node.name).value
            paths.add(path)
            paths |= _paths(node.selection_set, fragments, path + ".", expanding)
        elif isinstance(node, InlineFragmentNode):
            paths |= _paths(node.selection_set, fragments, prefix, expanding)
        elif isinstance(node, FragmentSpreadNode):
            name = node.name.value
            if name in expanding:
                continue
            if name not in fragments:
                raise ValueError(f"unknown fragment {name!r}")
            paths |= _paths(
                fragments[name].selection_set, fragments, prefix, expanding | {name}
            )
    return paths


def selected_fields(document: str, root: str = "event") -> frozenset[str]:
    """Return every dotted field path the document selects under `root`.

    Fragment spreads and inline fragments are expanded; aliases replace
    field names, as they do in the delivered payload.

    >>> sorted(selected_fields("subscription { event { transaction { id } } }"))
    ['transaction', 'transaction.id']

    Raises:
        ValueError: the document does not parse or spreads an unknown fragment.
    """
    try:
        ast = parse(document)
    except GraphQLError as e:
        raise ValueError(f"invalid subscription document: {e.message}") from e

    fragments = {
        definition.name.value: definition
        for definition in ast.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }
    prefix = root + "."
    fields = set()
    for definition in ast.definitions:
        if not isinstance(definition, OperationDefinitionNode):
            continue
        for path in _paths(definition.selection_set, fragments, "", frozenset()):
            if path.startswith(prefix):
                fields.add(path[len(prefix):])
    return frozenset(fields)
