"""
Safe lowering of JavaScript `var` declarations to `let` and `const`.

The front end reads a script with esprima; the scope graph and capture
analysis find every way a block-scoped binding would behave differently;
the classifier and emitter turn what survives into keyword edits.
"""
