"""
Core collaborators for MdTex.

- graph: content graph interface and filesystem vault
- resolver: link resolution with case/partial-path fallbacks
- process: external process execution
- lint: optional lint-fix hook
"""
