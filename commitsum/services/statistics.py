from typing import Dict, List

from commitsum.schemas import CommitSet, Statistics


def selected_repos(commit_set: CommitSet, selection: Dict[str, bool]) -> List[str]:
    """Selected repositories present in the commit set, in sorted order."""
    return [repo for repo in commit_set.repo_list if selection.get(repo)]


def compute(commit_set: CommitSet, selection: Dict[str, bool]) -> Statistics:
    """
    Aggregates commit counts over the selected repositories.
    Ties for most active go to the first repository in sorted order.
    """
    stats = Statistics()
    for repo in selected_repos(commit_set, selection):
        count = len(commit_set.commits_for(repo))
        stats.commits_per_repo[repo] = count
        stats.total_commits += count
        stats.total_repositories += 1

        if count > stats.max_commits:
            stats.max_commits = count
            stats.most_active_repo = repo

    return stats
