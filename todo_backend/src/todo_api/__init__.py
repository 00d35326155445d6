"""
FastAPI Todo Backend package.

Use ``todo_api.main.create_app`` to build the application around a
repository, or ``todo_api.main.run`` to serve it with settings read from
the environment.
"""
