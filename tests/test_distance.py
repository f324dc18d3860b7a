from concurrent.futures import ThreadPoolExecutor
import unittest

import numpy as np

from corrdist.database import AssociationID, PreprocessingState, VectorDatabase
from corrdist.distance import DistanceCounter, LocallyWeightedDistance, locally_weighted_distance
from corrdist.distance.locally_weighted import quadratic_form_distance
from corrdist.errors import MissingAssociationError
from corrdist.pca.local_pca import LocalPCAResult
from corrdist.preprocessing.registry import create


def database_with_weight_matrices(vectors, weight_matrices) -> VectorDatabase:
    database = VectorDatabase(vectors)
    for point_id, m in zip(database.ids, weight_matrices):
        database.set_association(AssociationID.LOCAL_PCA, point_id, LocalPCAResult.from_weight_matrix(m))
    database.associations.set_state(AssociationID.LOCAL_PCA, PreprocessingState.READY)
    return database


def two_lines(n_per_line: int = 20) -> np.ndarray:
    t = np.arange(n_per_line, dtype=np.float64)
    line_a = np.stack([t, np.zeros_like(t), np.zeros_like(t)], axis=1)
    line_b = np.stack([np.zeros_like(t), 100.0 + t, np.full_like(t, 50.0)], axis=1)
    return np.concatenate([line_a, line_b], axis=0)


class TestQuadraticForm(unittest.TestCase):
    def test_identity_weights_give_euclidean_distance(self):
        d = locally_weighted_distance(np.array([0.0, 0.0]), np.array([1.0, 0.0]), np.eye(2), np.eye(2))
        self.assertEqual(d, 1.0)

    def test_max_of_directional_evaluations(self):
        delta = np.array([1.0, 0.0])
        m_p = np.diag([100.0, 1.0])
        self.assertAlmostEqual(quadratic_form_distance(delta, m_p), 10.0)
        self.assertAlmostEqual(quadratic_form_distance(delta, np.eye(2)), 1.0)
        d = locally_weighted_distance(np.array([1.0, 0.0]), np.array([0.0, 0.0]), m_p, np.eye(2))
        self.assertAlmostEqual(d, 10.0)

    def test_tiny_negative_form_is_zero(self):
        m = np.array([[1.0, 0.0], [0.0, -1e-18]])
        self.assertEqual(quadratic_form_distance(np.array([0.0, 1.0]), m), 0.0)


class TestLocallyWeightedDistance(unittest.TestCase):
    def test_identity_scenario(self):
        database = database_with_weight_matrices([[0.0, 0.0], [1.0, 0.0]], [np.eye(2), np.eye(2)])
        distance = LocallyWeightedDistance(create("knn")).bind(database)
        self.assertEqual(distance.distance(0, 1), 1.0)

    def test_penalized_axis_scenario(self):
        database = database_with_weight_matrices([[0.0, 0.0], [1.0, 0.0]], [np.diag([100.0, 1.0]), np.eye(2)])
        distance = LocallyWeightedDistance(create("knn")).bind(database)
        self.assertAlmostEqual(distance.distance(0, 1), 10.0)
        self.assertAlmostEqual(distance.distance(1, 0), 10.0)

    def test_ready_associations_are_reused_without_force(self):
        database = database_with_weight_matrices([[0.0, 0.0], [1.0, 0.0]], [np.eye(2), np.eye(2)])
        before = database.get_association(AssociationID.LOCAL_PCA, 0)
        LocallyWeightedDistance(create("knn")).bind(database)
        self.assertIs(database.get_association(AssociationID.LOCAL_PCA, 0), before)

    def test_force_recomputes_and_overwrites(self):
        vectors = [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]]
        database = database_with_weight_matrices(vectors, [np.eye(2)] * 4)
        before = [database.get_association(AssociationID.LOCAL_PCA, pid) for pid in database.ids]

        distance = LocallyWeightedDistance(create("knn", k=4), force=True).bind(database)

        for pid, old in zip(database.ids, before):
            new = database.get_association(AssociationID.LOCAL_PCA, pid)
            self.assertIsNot(new, old)
            np.testing.assert_allclose(new.weight_matrix, np.diag([1.0, 100.0]), atol=1e-9)
        self.assertTrue(database.is_association_set(AssociationID.LOCAL_PCA))
        self.assertAlmostEqual(distance.distance(0, 1), 1.0)

    def test_missing_association_is_an_error(self):
        database = VectorDatabase([[0.0, 0.0], [1.0, 0.0]])
        database.set_association(AssociationID.LOCAL_PCA, 0, LocalPCAResult.from_weight_matrix(np.eye(2)))
        database.associations.set_state(AssociationID.LOCAL_PCA, PreprocessingState.READY)
        distance = LocallyWeightedDistance(create("knn")).bind(database)

        with self.assertRaises(MissingAssociationError) as ctx:
            distance.distance(0, 1)
        self.assertEqual(ctx.exception.point_id, 1)
        with self.assertRaises(MissingAssociationError):
            distance.distance_matrix()

    def test_unbound_distance_is_an_error(self):
        with self.assertRaises(RuntimeError):
            LocallyWeightedDistance(create("knn")).distance(0, 1)

    def test_metric_properties_on_computed_associations(self):
        rng = np.random.default_rng(21)
        database = VectorDatabase(rng.standard_normal((30, 3)))
        distance = LocallyWeightedDistance(create("knn", k=8)).bind(database)

        for p in range(0, 30, 3):
            self.assertEqual(distance.distance(p, p), 0.0)
            for q in range(1, 30, 4):
                d_pq = distance.distance(p, q)
                self.assertGreaterEqual(d_pq, 0.0)
                self.assertEqual(d_pq, distance.distance(q, p))

    def test_correlation_structure_separates_lines(self):
        database = VectorDatabase(two_lines())
        distance = LocallyWeightedDistance(create("knn", k=5)).bind(database)

        for pid in database.ids:
            self.assertEqual(database.get_association(AssociationID.LOCAL_PCA, pid).correlation_dimension, 1)
        self.assertAlmostEqual(distance.distance(0, 1), 1.0, places=6)
        self.assertAlmostEqual(distance.distance(20, 21), 1.0, places=6)
        self.assertGreater(distance.distance(0, 20), 100.0)

    def test_distance_matrix_matches_pairwise_distances(self):
        rng = np.random.default_rng(8)
        database = VectorDatabase(rng.standard_normal((12, 3)))
        distance = LocallyWeightedDistance(create("knn", k=6)).bind(database)

        before = distance.counter.value
        matrix = distance.distance_matrix()
        self.assertEqual(distance.counter.value - before, 12 * 11 // 2)

        self.assertEqual(matrix.shape, (12, 12))
        np.testing.assert_allclose(matrix, matrix.T)
        np.testing.assert_array_equal(np.diag(matrix), np.zeros(12))
        for p in range(12):
            for q in range(12):
                self.assertAlmostEqual(matrix[p, q], distance.distance(p, q), places=9)

    def test_distance_matrix_subset(self):
        database = VectorDatabase(two_lines(6))
        distance = LocallyWeightedDistance(create("knn", k=4)).bind(database)
        matrix = distance.distance_matrix([0, 1, 6])
        self.assertEqual(matrix.shape, (3, 3))
        self.assertAlmostEqual(matrix[0, 1], 1.0, places=6)


class TestDistanceCounter(unittest.TestCase):
    def test_each_call_increments(self):
        database = database_with_weight_matrices([[0.0, 0.0], [1.0, 0.0]], [np.eye(2), np.eye(2)])
        counter = DistanceCounter()
        distance = LocallyWeightedDistance(create("knn"), counter=counter).bind(database)
        for _ in range(5):
            distance.distance(0, 1)
        self.assertEqual(counter.value, 5)
        self.assertEqual(counter.reset(), 5)
        self.assertEqual(counter.value, 0)

    def test_counters_are_isolated_per_instance(self):
        database = database_with_weight_matrices([[0.0, 0.0], [1.0, 0.0]], [np.eye(2), np.eye(2)])
        first = LocallyWeightedDistance(create("knn")).bind(database)
        second = LocallyWeightedDistance(create("knn")).bind(database)
        first.distance(0, 1)
        self.assertEqual(first.counter.value, 1)
        self.assertEqual(second.counter.value, 0)

    def test_concurrent_queries_are_counted(self):
        rng = np.random.default_rng(2)
        database = VectorDatabase(rng.standard_normal((10, 2)))
        distance = LocallyWeightedDistance(create("knn", k=5)).bind(database)
        pairs = [(p, q) for p in range(10) for q in range(10)] * 20

        with ThreadPoolExecutor(max_workers=8) as pool:
            values = list(pool.map(lambda pq: distance.distance(*pq), pairs))

        self.assertEqual(distance.counter.value, len(pairs))
        self.assertTrue(all(v >= 0.0 for v in values))

    def test_negative_increment_rejected(self):
        with self.assertRaises(ValueError):
            DistanceCounter().increment(-1)


if __name__ == "__main__":
    unittest.main()
