"""
Dependencias de FastAPI que resuelven servicios desde el contenedor aioinject.
"""
from typing import Any, Callable, Type, TypeVar

from fastapi import Request

S = TypeVar("S")


def provide(service_type: Type[S]) -> Callable[[Request], Any]:
    """
    Crea una dependencia que obtiene `service_type` del contenedor de la app.

    Uso:
    ```python
    service: Annotated[DesignService, Depends(provide(DesignService))]
    ```
    """

    async def dependency(request: Request) -> S:
        container = request.app.state.container
        async with container.context() as ctx:
            return await ctx.resolve(service_type)

    dependency.__name__ = f"provide_{getattr(service_type, '__name__', 'service')}"
    return dependency
