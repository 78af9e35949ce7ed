"""Class-wise fee structures and the finance report."""
