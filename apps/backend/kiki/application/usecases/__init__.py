"""
Use cases grouped by feature: associations, auth, directory.

Import from the feature subpackages, e.g.
`from kiki.application.usecases.auth import LoginUseCase`.
"""
