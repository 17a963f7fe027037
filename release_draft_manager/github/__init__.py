"""GitHub API access built on githubkit."""
