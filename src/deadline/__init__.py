"""Deadline — a project tree kept in sync with one markdown note per project.

Layout inside the vault (defaults):
    <vault>/
    ├── projects.json                  # The tree: {"projects": [...]}, source of ids
    └── Projects/
        └── 1-Website/
            ├── 1-Website.md           # YAML header: id, name, deadline, priority, ...
            └── 1-1-Backend/
                └── 1-1-Backend.md     # Subproject, header links back to its parent

Header edits flow into the tree (ProjectSync); new projects and time logs
flow from the tree out (ProjectManager).
"""
