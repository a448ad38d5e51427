from functools import wraps
from typing import Callable, ParamSpec, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession

P = ParamSpec('P')
T = TypeVar('T')


def transactional(func: Callable[P, T]) -> Callable[P, T]:
    """Run the wrapped coroutine as one all-or-nothing unit of work.

    When the session already has a transaction open (the request-scoped
    session from get_db), the writes join it and the owner of that
    transaction commits or rolls back. Otherwise a transaction is begun
    and committed here.
    """
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        session = _extract_session(args, kwargs)

        if session.in_transaction():
            return await func(*args, **kwargs)
        async with session.begin():
            return await func(*args, **kwargs)
    return wrapper


def _extract_session(args, kwargs) -> AsyncSession:
    if args and isinstance(args[0], AsyncSession):
        return args[0]
    if 'db' in kwargs:
        return kwargs['db']
    if 'session' in kwargs:
        return kwargs['session']
    if args and hasattr(args[0], '_session') and isinstance(args[0]._session, AsyncSession):
        return args[0]._session
    raise ValueError("No session found in function arguments")
