"""
Built-in plugins.

Reference them from a configuration file by module path, e.g.
`graphql_codegen.plugins.graphql_types#plugin`.
"""
