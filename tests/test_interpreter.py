import unittest

from intlang.astnodes import Binary, Function, Literal, Operator, Reference, Unary, Var
from intlang.config import EvalConfig
from intlang.errors import (AddSubOverflow, CyclicReference, DivisionByZero, DivisionOverflow,
                            EvalError, IntLangError, InvalidOperator, MissingMain,
                            MultiplyOverflow, RecursionLimit, UndefinedVariable)
from intlang.interpreter import Evaluator, Interpreter, Step, compile_from_ast, compile_from_source
from intlang.memory import Memory
from intlang.parser import Dialect, parse

TRAP = EvalConfig(overflow="trap")


def run_main(body, config=None):
    return compile_from_source("fn main(){ %s }" % body, config=config)


def run_flat(body, config=None):
    return compile_from_source("main { %s }" % body, Dialect.FLAT, config)


class ArithmeticTestCase(unittest.TestCase):

    def test_adding_two_numbers(self):
        self.assertEqual(3, compile_from_source("fn main(name: int){let s = 1 + 2;}"))

    def test_subtracting_two_numbers(self):
        self.assertEqual(2, compile_from_source("fn main(){let s = 3 - 1;}"))

    def test_multiplying_two_numbers(self):
        self.assertEqual(6, compile_from_source("fn main(){let s = 3*2;}"))

    def test_dividing_two_numbers(self):
        self.assertEqual(3, compile_from_source("fn main(){let s = 6/2;}"))

    def test_increasing_a_number(self):
        self.assertEqual(3, compile_from_source("fn main(){let s = 2; s++;}"))
        self.assertEqual(3, run_main("2++;"))

    def test_decreasing_a_number(self):
        self.assertEqual(2, compile_from_source("fn main(a:int){let s=3;s--;}"))
        self.assertEqual(2, run_main("3--;"))

    def test_grouping(self):
        self.assertEqual(23, run_main("3+(5*4);"))
        self.assertEqual(32, run_main("(3+5)*4;"))
        self.assertEqual(23, run_main("3+5*4;"))

    def test_division_truncates_toward_zero(self):
        self.assertEqual(-3, run_main("-7 / 2;"))
        self.assertEqual(-3, run_main("7 / -2;"))
        self.assertEqual(3, run_main("-7 / -2;"))

    def test_unary_and_complement(self):
        self.assertEqual(-5, run_main("- 5;"))
        self.assertEqual(5, run_main("+5;"))
        self.assertEqual(-6, run_main("-(2*3);"))
        self.assertEqual(-6, run_main("!5;"))
        self.assertEqual(-1, run_main("!0;"))


class OverflowTestCase(unittest.TestCase):

    def test_add_sub_wrap_by_default(self):
        self.assertEqual(-2147483648, run_main("2147483647 + 1;"))
        self.assertEqual(2147483647, run_main("-2147483648 - 1;"))
        self.assertEqual(-2147483648, run_main("2147483647++;"))
        self.assertEqual(-2147483648, run_main("-(-2147483648);"))

    def test_add_sub_trap_when_configured(self):
        self.assertRaises(AddSubOverflow, run_main, "2147483647 + 1;", TRAP)
        self.assertRaises(AddSubOverflow, run_main, "-2147483648 - 1;", TRAP)
        self.assertRaises(AddSubOverflow, run_main, "2147483647++;", TRAP)
        self.assertRaises(AddSubOverflow, run_main, "-(-2147483648);", TRAP)
        self.assertEqual(2147483647, run_main("2147483646 + 1;", TRAP))

    def test_multiply_overflow_is_fatal(self):
        self.assertRaises(MultiplyOverflow, run_main, "65536 * 65536;")
        self.assertEqual(-2147483648, run_main("65536 * -32768;"))

    def test_division_overflow(self):
        self.assertRaises(DivisionOverflow, run_main, "-2147483648 / -1;")

    def test_division_by_zero_in_every_dialect(self):
        for lhs in (-7, -1, 0, 1, 2147483647):
            with self.subTest(lhs=lhs):
                self.assertRaises(DivisionByZero, run_main, "%d / 0;" % lhs)
                self.assertRaises(DivisionByZero, run_flat, "let s = %d / (1 - 1);" % lhs)


class VariableTestCase(unittest.TestCase):

    def test_reference_chain(self):
        self.assertEqual(2, run_main("let a = 2; let b = a; b;"))
        self.assertEqual(2, run_main("let a = 2; let b = a; let c = b;"))

    def test_bindings_are_lazy(self):
        # b keeps the expression a + 1, not the value it had when bound
        self.assertEqual(6, run_main("let a = 1; let b = a + 1; let a = 5; b;"))

    def test_undefined_variable(self):
        with self.assertRaises(UndefinedVariable) as ctx:
            run_main("let s = x + 1;")
        self.assertEqual("x", ctx.exception.name)
        self.assertRaises(UndefinedVariable, run_main, "let b = a; let a = 1;")

    def test_self_reference_is_a_cycle(self):
        with self.assertRaises(CyclicReference) as ctx:
            run_main("let s = s + 1;")
        self.assertEqual(("s", "s"), ctx.exception.chain)

    def test_mutual_reference_is_a_cycle(self):
        self.assertRaises(CyclicReference, run_main, "let a = 1; let b = a; let a = b;")

    def test_call_reads_a_variable(self):
        self.assertEqual(8, run_main("let f = 4; f(1, 2) * 2;"))


class ProgramTestCase(unittest.TestCase):

    def test_empty_main(self):
        self.assertEqual(0, compile_from_source("fn main(){}"))

    def test_result_is_mains_last_statement(self):
        src = "fn helper(){ let h = 5; h; } fn main(){ let m = 1; m + 1; }"
        self.assertEqual(2, compile_from_source(src))

    def test_units_share_memory_and_main_runs_first(self):
        self.assertEqual(1, compile_from_source("fn main(){ let m = 1; } fn other(){ let o = m + 1; }"))
        self.assertRaises(UndefinedVariable, compile_from_source,
                          "fn main(){ let m = h; } fn helper(){ let h = 5; }")

    def test_vars_evaluate_before_exprs(self):
        # the expression statement sees the later binding of a
        self.assertEqual(10, run_main("let a = 1; a; let a = 10;"))

    def test_flat_dialect_sums_bindings(self):
        self.assertEqual(7, run_flat("let a = 2; let b = a + 3;"))
        self.assertEqual(22, run_flat("let a = 2; a * 10;"))
        self.assertEqual(0, run_flat(""))

    def test_flat_expression_statements_are_not_bound(self):
        self.assertRaises(UndefinedVariable, run_flat, "5; _ + 1;")
        self.assertEqual(10, run_flat("let _ = 3; 4; let y = _;"))

    def test_flat_expression_steps(self):
        interp = Interpreter(parse("main { let a = 2; a + 1; }", Dialect.FLAT))
        self.assertEqual([Step("main", "let", "let a = 2", 2), Step("main", "expr", "a + 1", 3)],
                         list(interp.run_steps()))
        self.assertEqual(["a"], interp.memory.names())

    def test_declaration_order_matters(self):
        self.assertEqual(12, run_flat("let a = 1; let b = a; let a = 10;"))
        self.assertEqual(21, run_flat("let a = 10; let b = a; let a = 1;"))

    def test_flat_sum_follows_overflow_policy(self):
        self.assertEqual(-2147483648, run_flat("let a = 2147483647; let b = 1;"))
        self.assertRaises(AddSubOverflow, run_flat, "let a = 2147483647; let b = 1;", TRAP)

    def test_errors_are_typed(self):
        for body in ("let s = 1 / 0;", "let s = q;", "let s = s;"):
            with self.subTest(body=body):
                self.assertRaises(IntLangError, run_main, body)


class CompileFromAstTestCase(unittest.TestCase):

    def test_flat_vars(self):
        ast = [Var("a", Literal(2)), Var("b", Reference("a"))]
        self.assertEqual(4, compile_from_ast(ast))

    def test_functions_are_reordered(self):
        ast = [Function("other", (), (Var("o", Literal(9)),), (), 0),
               Function("main", (), (), (Literal(4),), 0)]
        self.assertEqual(4, compile_from_ast(ast))

    def test_missing_main(self):
        self.assertRaises(MissingMain, compile_from_ast,
                          [Function("foo", (), (), (Literal(1),), 0)])

    def test_bad_crement_step(self):
        ast = [Function("main", (), (), (Binary(Literal(2), Operator.INCR, Literal(2)),), 0)]
        self.assertRaises(InvalidOperator, compile_from_ast, ast)


class EvaluatorTestCase(unittest.TestCase):

    def test_unary_rejects_other_operators(self):
        self.assertRaises(InvalidOperator, Unary, Operator.COMP, Literal(1))
        self.assertRaises(InvalidOperator, Unary, Operator.MUL, Literal(1))

    def test_unknown_node(self):
        self.assertRaises(EvalError, Evaluator(Memory()).eval, object())

    def test_depth_limit(self):
        expr = Literal(1)
        for _ in range(6):
            expr = Binary(Literal(1), Operator.ADD, expr)
        self.assertEqual(7, Evaluator(Memory()).eval(expr))
        self.assertRaises(RecursionLimit, Evaluator(Memory(), EvalConfig(max_depth=5)).eval, expr)

    def test_deep_input_does_not_crash(self):
        src = "fn main(){ %s1%s; }" % ("(1+" * 300, ")" * 300)
        self.assertRaises(RecursionLimit, compile_from_source, src)

    def test_trace_hook(self):
        seen = []
        compile_from_source("fn main(){ let a = 2; a * 3; }",
                            trace=lambda e, v: seen.append((str(e), v)))
        self.assertEqual([("a", 2), ("a * 3", 6)], seen)

    def test_long_chains_are_not_limited_by_depth(self):
        self.assertEqual(250, run_main(" + ".join(["1"] * 250) + ";"))
        self.assertEqual(-2999, run_main("let a = 1; 1%s;" % (" - a" * 3000)))

    def test_trace_follows_evaluation_order_in_chains(self):
        seen = []
        compile_from_source("fn main(){ 1 + 2 * 3 - 4; }",
                            trace=lambda e, v: seen.append((str(e), v)))
        self.assertEqual([("2 * 3", 6), ("1 + (2 * 3)", 7), ("(1 + (2 * 3)) - 4", 3)], seen)

    def test_memory_is_not_mutated_by_eval(self):
        memory = Memory()
        memory.add(Var("a", Literal(3)))
        ev = Evaluator(memory)
        self.assertEqual(4, ev.eval(Binary(Reference("a"), Operator.INCR, Literal(1))))
        self.assertEqual(Literal(3), memory.find("a"))


class StepTestCase(unittest.TestCase):

    def test_run_steps(self):
        interp = Interpreter(parse("fn main(){ let a = 2; a + 1; }"))
        self.assertEqual([Step("main", "let", "let a = 2", 2), Step("main", "expr", "a + 1", 3)],
                         list(interp.run_steps()))

    def test_each_run_gets_fresh_memory(self):
        interp = Interpreter(parse("fn main(){ let a = 2; a + 1; }"))
        self.assertEqual(3, interp.run())
        self.assertEqual(3, interp.run())
        self.assertEqual(["a"], interp.memory.names())


if __name__ == '__main__':
    unittest.main()
