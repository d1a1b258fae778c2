"""
Tolerant fan-out / fan-in

Runs independent fetches in parallel. Each branch yields its data or an
explicit default; the caller never observes a raw failure.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Branch:
	"""Una rama del fan-out: la llamada y el valor si falla."""

	def __init__(self, call: Callable[[], Any], default: Any = None):
		self.call = call
		self.default = default


def _run_branch(name: str, branch: Branch) -> Any:
	try:
		return branch.call()
	except Exception as e:
		logger.warning(f"Source '{name}' failed, using empty result: {e}")
		return branch.default


def gather(branches: Dict[str, Branch], max_workers: Optional[int] = None) -> Dict[str, Any]:
	"""
	Ejecuta las ramas en paralelo y espera a todas.

	Args:
		branches: {nombre: Branch}
		max_workers: hilos (por defecto, una por rama)

	Returns:
		dict: {nombre: resultado o default}, con las mismas claves y en el
		mismo orden que branches, sin importar el orden de llegada
	"""
	if not branches:
		return {}

	workers = max_workers or len(branches)
	with ThreadPoolExecutor(max_workers=workers) as executor:
		futures = {
			name: executor.submit(_run_branch, name, branch)
			for name, branch in branches.items()
		}
		return {name: future.result() for name, future in futures.items()}
