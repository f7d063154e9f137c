"""Infrastructure layer.

Settings, database lifecycle, quote persistence models, the transactional
email client and logging configuration.
"""
