from __future__ import annotations

from concurrent.futures import Future, Executor, ThreadPoolExecutor

from typing import *

T = TypeVar('T')


class SingleThreadExecutor(Executor):
    """ Mock executor used when only one worker is requested. Task is run in the calling thread on submit. """
    def __enter__(self: SingleThreadExecutor) -> SingleThreadExecutor:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> Optional[bool]:
        return

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        future = Future()
        if not future.set_running_or_notify_cancel():
            return future

        try:
            result = fn(*args, **kwargs)
        except KeyboardInterrupt as e:
            raise e
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)

        return future


def get_executor(num_workers: int) -> Executor:
    """ Function that returns an executor according to the desired number of worker threads.

    :param num_workers: Number of worker threads
    :return: SingleThreadExecutor if num_workers is 1, ThreadPoolExecutor if num_workers > 1, otherwise raise a
    ValueError exception
    """
    if num_workers == 1:
        return SingleThreadExecutor()
    elif num_workers > 1:
        return ThreadPoolExecutor(num_workers, thread_name_prefix='eventdump')
    else:
        raise ValueError(f'{num_workers} is not a valid argument for number of workers.')
