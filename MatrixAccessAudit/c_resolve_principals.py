"""
c_resolve_principals.py

Resolves every distinct principal name referenced by a reportable matrix
exactly once, using a bounded ThreadPoolExecutor and a TQDM progress bar.

The batch is all-or-nothing: outcomes are only looked at after every lookup
returned. If any lookup failed, ResolutionBatchError is raised with all
failures joined into one message and no result is handed out.

The same batch runner resolves group managers (mode "identity", keyed by
distinguished name) for f_expand_group_managers.
"""

import concurrent.futures
from tqdm import tqdm

from MatrixAccessAudit.errors import ResolutionBatchError
from MatrixAccessAudit.models import LookupOutcome

BY_NAME = "name"
BY_IDENTITY = "identity"


def distinct_keys(keys):
    """Trimmed, exact-match dedup in first-seen order; blanks dropped."""
    seen = {}
    for key in keys:
        key = (key or "").strip()
        if key and key not in seen:
            seen[key] = None
    return list(seen)


def distinct_principal_names(references, matrices):
    wanted = {m.file_name for m in matrices}
    return distinct_keys(
        ref.principal_name for ref in references if ref.matrix_file_name in wanted
    )


def lookup_one(directory, key, mode):
    """
    Runs one lookup and turns its exception (if any) into a failed outcome,
    so the batch can report every failure instead of the first one.
    """
    try:
        return LookupOutcome(key, value=directory.lookup(key, mode))
    except Exception as e:
        return LookupOutcome(key, error=str(e) or e.__class__.__name__)


def resolve_batch(directory, keys, mode=BY_NAME, max_workers=6, desc="Resolving principals"):
    """
    Returns {key: DirectoryObject or None} for every key in `keys`.
    `keys` must already be distinct; each is requested exactly once.
    """
    outcomes = []
    if keys:
        workers = max(1, min(max_workers, len(keys)))
        with tqdm(total=len(keys), desc=desc, unit="obj") as pbar:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(lookup_one, directory, key, mode) for key in keys]
                for future in concurrent.futures.as_completed(futures):
                    outcomes.append(future.result())
                    pbar.update(1)

    # Batch barrier passed; nothing above reads a result.
    failures = {o.key: o.error for o in outcomes if o.failed}
    if failures:
        ordered = {key: failures[key] for key in keys if key in failures}
        raise ResolutionBatchError(ordered)

    by_key = {o.key: o.value for o in outcomes}
    return {key: by_key[key] for key in keys}


def resolve_principals(directory, references, matrices, max_workers=6):
    """Resolves the principals of `matrices` (the reportable ones) by name."""
    names = distinct_principal_names(references, matrices)
    return resolve_batch(directory, names, BY_NAME, max_workers, desc="Resolving principals")
