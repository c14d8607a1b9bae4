from commitsum.services.statistics import compute, selected_repos
from conftest import make_commit_set


def test_two_repo_scenario():
    """Three commits in A and two in B: A is the most active."""
    commit_set = make_commit_set({"A": 3, "B": 2})

    stats = compute(commit_set, {"A": True, "B": True})

    assert stats.total_commits == 5
    assert stats.total_repositories == 2
    assert stats.most_active_repo == "A"
    assert stats.max_commits == 3
    assert stats.commits_per_repo == {"A": 3, "B": 2}


def test_only_selected_repositories_count():
    commit_set = make_commit_set({"A": 3, "B": 2, "C": 7})

    stats = compute(commit_set, {"A": True, "B": False, "C": True})

    assert stats.total_repositories == 2
    assert stats.total_commits == 10
    assert "B" not in stats.commits_per_repo
    assert stats.most_active_repo == "C"


def test_sum_invariant():
    commit_set = make_commit_set({"a/x": 4, "a/y": 1, "b/z": 6})
    stats = compute(commit_set, {repo: True for repo in commit_set.repo_list})

    assert sum(stats.commits_per_repo.values()) == stats.total_commits
    assert len(stats.commits_per_repo) == stats.total_repositories
    assert stats.max_commits == max(stats.commits_per_repo.values())


def test_tie_goes_to_first_in_sorted_order():
    commit_set = make_commit_set({"zeta": 2, "alpha": 2})
    stats = compute(commit_set, {"zeta": True, "alpha": True})
    assert stats.most_active_repo == "alpha"


def test_empty_selection():
    stats = compute(make_commit_set({"A": 1}), {})
    assert stats.total_commits == 0
    assert stats.total_repositories == 0
    assert stats.most_active_repo == ""


def test_selected_repos_ignores_unknown_names():
    commit_set = make_commit_set({"B": 1, "A": 1})
    assert selected_repos(commit_set, {"A": True, "B": True, "ghost": True}) == ["A", "B"]
