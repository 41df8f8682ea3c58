from playwright.async_api import async_playwright

UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome Safari vaxscrape/1.0"


async def init_browser(headless: bool = True):
    pw = await async_playwright().start()
    browser = await pw.chromium.launch(headless=headless)
    return pw, browser


async def new_page(browser):
    ctx = await browser.new_context(user_agent=UA)
    return ctx, await ctx.new_page()
