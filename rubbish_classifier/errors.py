class ClassifierError(Exception):
    """Error base del clasificador."""


class InputError(ClassifierError):
    """Datos de entrada inválidos. Es el único error que llega al cliente HTTP."""


class InvalidImageError(InputError):
    pass


class InvalidWeightError(InputError):
    pass


class LabelingError(ClassifierError):
    """Falla de la API de visión (red, timeout, status != 2xx, respuesta rara)."""
