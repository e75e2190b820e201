"""Tests for splitting matrices on their responsible."""

from MatrixAccessAudit.b_partition_matrices import partition_matrices, principals_by_matrix
from MatrixAccessAudit.models import MatrixEntry, PrincipalReference


def test_partition_keeps_order_and_covers_everything() -> None:
    matrices = [
        MatrixEntry("A", ("a@x.com",)),
        MatrixEntry("B"),
        MatrixEntry("C", ("c@x.com", "d@x.com")),
        MatrixEntry("D", ("  ",)),
    ]
    with_responsible, without_responsible = partition_matrices(matrices)

    assert [m.file_name for m in with_responsible] == ["A", "C"]
    assert [m.file_name for m in without_responsible] == ["B", "D"]
    assert sorted(with_responsible + without_responsible, key=matrices.index) == matrices


def test_principals_by_matrix_keeps_duplicates_and_skips_unknown_matrices() -> None:
    matrices = [MatrixEntry("A", ("a@x.com",))]
    references = [
        PrincipalReference("A", "g1"),
        PrincipalReference("B", "g2"),
        PrincipalReference("A", " u1 "),
        PrincipalReference("A", "g1"),
    ]

    assert principals_by_matrix(matrices, references) == {"A": ["g1", "u1", "g1"]}
