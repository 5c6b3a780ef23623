"""Shared constants for tree filtering, language detection and test naming."""

# Non-source entries hidden from directory listings. A single `*` acts as a
# wildcard; patterns without one match a name by prefix.
IGNORED_PATHS = (
    '.git', 'node_modules', '.vscode', '.idea', 'build', 'dist',
    'coverage', '.nyc_output', 'logs', '*.log', '.DS_Store',
    'Thumbs.db', '.env*', '*.min.js', '*.bundle.js',
)

LANGUAGE_BY_EXTENSION = {
    'js': 'JavaScript',
    'jsx': 'React',
    'ts': 'TypeScript',
    'tsx': 'React TypeScript',
    'py': 'Python',
    'java': 'Java',
    'cpp': 'C++',
    'c': 'C',
    'cs': 'C#',
    'php': 'PHP',
    'rb': 'Ruby',
    'go': 'Go',
    'vue': 'Vue',
    'svelte': 'Svelte',
}

TEST_FILE_EXTENSIONS = {
    'jest': '.js',
    'vitest': '.js',
    'react testing library': '.jsx',
    'junit': '.java',
    'pytest': '.py',
    'mocha': '.js',
    'chai': '.js',
    'jasmine': '.js',
    'cypress': '.cy.js',
    'playwright': '.spec.js',
}

DEFAULT_TEST_FILE_EXTENSION = '.js'

PREVIEW_CHAR_LIMIT = 2000
MIN_TEST_PLANS = 2
MAX_TEST_PLANS = 4
