"""
General-purpose helpers not related to the API clients themselves,
which are used to prepare and control the runtime environment:
type definitions, version detection, logging setup.

Helpers do not depend on anything else in the package.
"""
