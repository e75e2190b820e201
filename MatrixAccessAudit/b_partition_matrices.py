"""
b_partition_matrices.py

Splits the imported matrices on the presence of a responsible owner.
Matrices without one are skipped by every later phase.
"""


def partition_matrices(matrices):
    """Returns (with_responsible, without_responsible); source order kept in both."""
    with_responsible = []
    without_responsible = []
    for matrix in matrices:
        if any(address.strip() for address in matrix.responsible):
            with_responsible.append(matrix)
        else:
            without_responsible.append(matrix)
    return with_responsible, without_responsible


def principals_by_matrix(matrices, references):
    """
    Maps each matrix file name to its ordered principal-name list.
    Only matrices in `matrices` are included; names keep duplicates.
    """
    names = {m.file_name: [] for m in matrices}
    for ref in references:
        if ref.matrix_file_name in names:
            principal = ref.principal_name.strip()
            if principal:
                names[ref.matrix_file_name].append(principal)
    return names
