import sys


def read_lines_from_file(path):
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        return f.read().splitlines()


def read_lines_from_stdin():
    return sys.stdin.read().splitlines()


def write_lines_to_file(path, lines):
    # Always overwritten, never appended
    with open(path, 'w', encoding='utf-8') as f:
        for line in lines:
            f.write(f"{line}\n")
