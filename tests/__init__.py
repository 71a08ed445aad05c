"""
Only the root tests directory carries an __init__.py. It makes `tests` importable as a
package (so test modules can use `tests.helpers`), while the subdirectories work as
namespace packages. Test module names are unique across the tree for that reason.
"""
