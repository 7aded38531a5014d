"""Request body validation for Flask endpoints.

@validate_request looks for a parameter named ``data`` annotated with a
pydantic model, validates the JSON body against it and passes the model
instance in. Path parameters are passed through untouched.

Example:

    @bp.post("/action")
    @validate_request
    def run_action(data: ActionRequest):
        ...
"""

import inspect
import json
from functools import wraps

from flask import request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError


def validate_request(f):
    """Validate the JSON request body against the ``data`` parameter's model."""
    signature = inspect.signature(f)
    parameter = signature.parameters.get("data")
    if parameter is None or not (
        inspect.isclass(parameter.annotation) and issubclass(parameter.annotation, BaseModel)
    ):
        raise TypeError(f"{f.__name__} needs a 'data' parameter annotated with a pydantic model")
    model = parameter.annotation

    @wraps(f)
    def wrapper(*args, **kwargs):
        body = request.get_json(silent=True)
        if not body:
            raise ValidationError("Request body is required")

        try:
            kwargs["data"] = model.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid request data",
                {"errors": json.loads(e.json(include_url=False))}
            ) from e

        return f(*args, **kwargs)

    return wrapper
