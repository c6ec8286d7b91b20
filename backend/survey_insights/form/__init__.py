"""Survey-taking client: form state, typed inputs, draft storage and submission."""
