__author__ = "Anatoly Khaytovich <anatolyuss@gmail.com>"
__copyright__ = "Copyright (C) 2015 - present, Anatoly Khaytovich <anatolyuss@gmail.com>"
__license__ = """
    This file is a part of "FromMySqlToPostgreSql" - the database migration tool.
    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program (please see the "LICENSE.md" file).
    If not, see <http://www.gnu.org/licenses/gpl.txt>.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from pgimport.fs_ops import generate_error
from pgimport.conversion import Conversion


def run_concurrently(
    conversion: Conversion,
    func: Callable,
    params_list: list[Any],
    max_workers: Optional[int] = None
) -> list[Any]:
    """
    Runs in parallel given function with different parameter sets.
    A failed task is logged, and does not affect other tasks.
    """
    number_of_tasks = len(params_list)

    if number_of_tasks == 0:
        return []

    number_of_workers = min(
        number_of_tasks,
        max_workers or conversion.max_each_db_connection_pool_size,
        conversion.max_each_db_connection_pool_size,
    )

    parallel_execution_result = []

    with ThreadPoolExecutor(max_workers=number_of_workers) as executor:
        futures = [executor.submit(func, *params) for params in params_list]

        for future in as_completed(futures):
            try:
                parallel_execution_result.append(future.result())
            except Exception as e:
                generate_error(conversion, f'[{run_concurrently.__name__}] {repr(e)}')

    return parallel_execution_result
