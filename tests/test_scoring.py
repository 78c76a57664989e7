"""
Scoring tests: evaluation signal, exploration-shaped training weights and the
guard on returned weights.
"""

import logging
import math

import numpy as np
import pytest

from qlearner.agent_qlearn import QLearner, QValue
from qlearner.scoring import predict, training_score


def make_learner(minimize=True):
    return QLearner(is_minimization=minimize, d_size=1, c_size=0, n_actions=3)


def sample(learner, d, action, reward, times=1):
    s = learner.make_state(d, None)
    for _ in range(times):
        learner.add_sample(s, action, None, reward)


# =============================================================================
# EVALUATION MODE
# =============================================================================

class TestEvaluation:

    def test_best_action_scores_one(self):
        q = make_learner()
        sample(q, [0], 0, 1.0)
        sample(q, [0], 1, 2.0)
        assert predict(q, True, 0, [0], None) == 1.0
        assert predict(q, True, 1, [0], None) == 0.0

    def test_unsampled_action_in_known_state(self):
        q = make_learner()
        sample(q, [0], 0, 1.0)
        assert predict(q, True, 2, [0], None) == 0.0
        assert q.uncovered_states == set()

    def test_uncovered_pair_scores_zero(self):
        q = make_learner(minimize=False)
        s = q.make_state([0], None)
        q.add_uncovered(s, 0)
        sample(q, [0], 1, 1.0)
        assert predict(q, True, 0, [0], None) == 0.0
        assert predict(q, True, 1, [0], None) == 1.0

    def test_unknown_state_logged_once(self, caplog):
        q = make_learner()
        with caplog.at_level(logging.WARNING, logger="qlearner.scoring"):
            assert predict(q, True, 0, [4], None) == 0.0
            assert predict(q, True, 1, [4], None) == 0.0
            assert predict(q, True, 0, [5], None) == 0.0
        not_found = [r for r in caplog.records if "not found" in r.getMessage()]
        assert len(not_found) == 2
        assert q.uncovered_states == {q.make_state([4], None), q.make_state([5], None)}

    def test_learning_mode_does_not_mark(self):
        q = make_learner()
        sample(q, [0], 0, 1.0)
        predict(q, True, 0, [0], None)
        assert not q.value(q.make_state([0], None), 0).select

    def test_frozen_mode_marks_on_evaluation(self):
        q = make_learner()
        sample(q, [0], 0, 1.0)
        sample(q, [0], 1, 2.0)
        q.learning = False
        s = q.make_state([0], None)

        predict(q, True, 0, [0], None)
        predict(q, True, 1, [0], None)
        assert q.value(s, 0).select
        assert not q.value(s, 1).select

    def test_frozen_mode_training_query_does_not_mark(self):
        q = make_learner()
        sample(q, [0], 0, 1.0)
        q.learning = False
        predict(q, False, 0, [0], None)
        assert not q.value(q.make_state([0], None), 0).select


# =============================================================================
# TRAINING MODE
# =============================================================================

class TestTraining:

    def test_unvisited_state_scores_zero(self):
        q = make_learner()
        assert predict(q, False, 0, [9], None) == 0.0

    def test_flat_state_scores_one(self):
        q = make_learner()
        sample(q, [0], 0, 2.0)
        sample(q, [0], 1, 2.0)
        assert predict(q, False, 0, [0], None) == 1.0
        assert predict(q, False, 1, [0], None) == 1.0
        assert predict(q, False, 2, [0], None) == 1.0

    def test_single_action_state_scores_one(self):
        q = make_learner()
        sample(q, [0], 0, 2.0, times=5)
        assert predict(q, False, 0, [0], None) == 1.0

    def test_best_and_worst_maximization(self):
        q = make_learner(minimize=False)
        sample(q, [0], 0, 10.0)
        sample(q, [0], 1, 2.0)
        r = math.sqrt(math.log(2))
        C = 0.5
        assert predict(q, False, 0, [0], None) == pytest.approx(1.0 + r * C / (1 + C))
        assert predict(q, False, 1, [0], None) == pytest.approx(r * C / (1 + C))

    def test_best_and_worst_minimization(self):
        q = make_learner(minimize=True)
        sample(q, [0], 0, 10.0)
        sample(q, [0], 1, 2.0)
        r = math.sqrt(math.log(2))
        C = 0.5
        assert predict(q, False, 1, [0], None) == pytest.approx(1.0 + r * C / (1 + C))
        assert predict(q, False, 0, [0], None) == pytest.approx(r * C / (1 + C))

    def test_unsampled_action_assumed_best(self):
        q = make_learner(minimize=False)
        sample(q, [0], 0, 10.0)
        sample(q, [0], 1, 2.0)
        # relative = 1, exponent sqrt(pr_action = 1), r = 1
        assert predict(q, False, 2, [0], None) == pytest.approx(1.0 + 0.5 / 1.5)

    def test_sharpening_grows_with_samples(self):
        q = make_learner(minimize=False)
        sample(q, [0], 0, 10.0)
        sample(q, [0], 1, 0.0)
        sample(q, [0], 2, 5.0, times=4)
        # sum_count 6, n_actions 3, relative 0.5 lifted to sqrt(max(4, 2)) = 2
        C = 1.0 / 3.0
        r = math.sqrt(math.log(6) / 4)
        assert predict(q, False, 2, [0], None) == pytest.approx(0.25 + r * C / (1 + C))

    def test_exponent_cap(self):
        q = make_learner(minimize=False)
        s = q.make_state([0], None)
        sample(q, [0], 0, 10.0)
        sample(q, [0], 1, 0.0)
        q.Q[s][2] = QValue(value=9.0, count=10 ** 8)
        score = training_score(q, s, 2)
        C = 1.0 / 3.0
        r = math.sqrt(math.log(10 ** 8 + 2) / 10 ** 8)
        assert score == pytest.approx(0.9 ** 1000 + r * C / (1 + C))

    def test_weights_finite_and_non_negative(self):
        rng = np.random.default_rng(3)
        for minimize in (True, False):
            q = make_learner(minimize)
            for _ in range(400):
                d = int(rng.integers(0, 5))
                s = q.make_state([d], None)
                s2 = None if rng.random() < 0.3 else q.make_state([int(rng.integers(0, 5))], None)
                q.add_sample(s, int(rng.integers(0, 3)), s2, float(rng.normal(0, 50)))
            for d in range(6):
                for a in range(4):
                    for is_eval in (False, True):
                        w = predict(q, is_eval, a, [d], None)
                        assert math.isfinite(w)
                        assert w >= 0.0


# =============================================================================
# WEIGHT GUARD
# =============================================================================

class TestWeightGuard:

    def test_infinite_reward_falls_back_to_zero(self, caplog):
        q = make_learner()
        sample(q, [0], 0, float("inf"))
        sample(q, [0], 1, 1.0)
        with caplog.at_level(logging.WARNING, logger="qlearner.scoring"):
            assert predict(q, False, 0, [0], None) == 0.0
            assert predict(q, False, 1, [0], None) == 0.0
        assert any("Discarding weight" in r.getMessage() for r in caplog.records)

    def test_finite_extremes_pass_through(self):
        q = make_learner()
        sample(q, [0], 0, 1e300)
        sample(q, [0], 1, -1e300)
        assert math.isfinite(predict(q, False, 0, [0], None))
