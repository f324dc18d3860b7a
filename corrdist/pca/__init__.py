from .local_pca import (
    LOCAL_PCA_VERSION,
    LocalPCAConfig,
    LocalPCAResult,
    build_weight_matrix,
    clamp_eigenvalues,
    compute_local_pca,
    compute_scatter_matrix,
    select_correlation_dimension,
    sorted_eigenpairs,
)

__all__ = [
    "LOCAL_PCA_VERSION",
    "LocalPCAConfig",
    "LocalPCAResult",
    "build_weight_matrix",
    "clamp_eigenvalues",
    "compute_local_pca",
    "compute_scatter_matrix",
    "select_correlation_dimension",
    "sorted_eigenpairs",
]
