class ReconcileInfrastructureError(Exception):
    pass


class DataSourceError(ReconcileInfrastructureError):
    pass


class DataSourceNotFoundError(DataSourceError):
    pass


class DataParseError(DataSourceError):
    pass


class DataValidationError(DataSourceError):
    pass
